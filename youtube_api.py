import logging
import re
from urllib.parse import parse_qs, urlparse

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from errors import MissingCredentialError, NotFoundError, RequestFailedError
from models import (
    ChannelRecord,
    ChannelStats,
    VideoRecord,
    VideoStats,
    VideoSummary,
)

logger = logging.getLogger(__name__)

_VIDEO_ID_RE = re.compile(r"[A-Za-z0-9_-]{11}")
_THUMBNAIL_PREFERENCE = ("maxres", "standard", "high", "medium", "default")
# Public, long-lived video used to check that an API key works (1 quota unit).
_KEY_CHECK_VIDEO_ID = "dQw4w9WgXcQ"
RECENT_VIDEO_COUNT = 5


def extract_video_id(text: str | None) -> str | None:
    """
    Pull a video ID out of a watch URL, a youtu.be share link or a bare ID.
    Returns None when the input should be treated as a search keyword instead.
    """
    if not text:
        return None

    video_id = None
    try:
        if "youtu.be/" in text:
            video_id = text.split("youtu.be/", 1)[1].split("?")[0].split("&")[0].strip()
        elif "youtube.com/" in text:
            video_id = parse_qs(urlparse(text.strip()).query).get("v", [None])[0]
    except ValueError:
        video_id = None

    if video_id:
        return video_id

    candidate = text.strip()
    if _VIDEO_ID_RE.fullmatch(candidate):
        return candidate
    return None


def _build_client(api_key: str):
    return build("youtube", "v3", developerKey=api_key)


def _error_message(e: HttpError) -> str:
    # HttpError already digs error.message out of the JSON body when present
    return getattr(e, "reason", None) or str(e)


def _execute(request, action: str) -> dict:
    try:
        return request.execute()
    except HttpError as e:
        raise RequestFailedError(f"Failed to {action}: {_error_message(e)}") from e


def _best_thumbnail(thumbnails: dict) -> str:
    for size in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


def _video_from_item(item: dict) -> VideoRecord:
    snippet = item.get("snippet", {})
    stats = item.get("statistics", {})
    return VideoRecord(
        id=item["id"],
        title=snippet.get("title", ""),
        description=snippet.get("description", ""),
        tags=snippet.get("tags") or [],
        thumbnail_url=_best_thumbnail(snippet.get("thumbnails", {})),
        channel_title=snippet.get("channelTitle", ""),
        stats=VideoStats(
            view_count=int(stats.get("viewCount", 0)),
            like_count=int(stats.get("likeCount", 0)),
            comment_count=int(stats.get("commentCount", 0)),
        ),
    )


class YouTubeClient:
    """Read-only access to the YouTube Data API v3 for one API key."""

    def __init__(self, api_key: str):
        if not api_key:
            raise MissingCredentialError("YouTube API key is not set")
        self._youtube = _build_client(api_key)

    def fetch_video(self, video_id: str) -> VideoRecord:
        response = _execute(
            self._youtube.videos().list(part="snippet,statistics", id=video_id),
            "fetch video details",
        )
        items = response.get("items") or []
        if not items:
            raise NotFoundError(f'Video with ID "{video_id}" not found.')
        return _video_from_item(items[0])

    def search_benchmark_video(self, keyword: str) -> VideoRecord:
        """Find the most viewed video for a keyword and fetch its full details."""
        response = _execute(
            self._youtube.search().list(
                part="snippet",
                q=keyword,
                type="video",
                order="viewCount",
                maxResults=1,
            ),
            "search for benchmark video",
        )
        items = response.get("items") or []
        if not items:
            raise NotFoundError(f'No videos found for keyword "{keyword}".')

        video_id = items[0]["id"]["videoId"]
        logger.info("Benchmark for %r resolved to video %s", keyword, video_id)
        return self.fetch_video(video_id)

    def fetch_channel(self, identifier: str) -> ChannelRecord:
        """
        Resolve a channel name/handle via search, then pull its statistics
        and the most recent uploads. Three sequential calls; any failure
        aborts the whole lookup.
        """
        search_resp = _execute(
            self._youtube.search().list(part="snippet", q=identifier, type="channel"),
            "search for YouTube channel",
        )
        items = search_resp.get("items") or []
        if not items:
            raise NotFoundError(f'Channel "{identifier}" not found.')
        channel_id = items[0]["snippet"]["channelId"]

        stats_resp = _execute(
            self._youtube.channels().list(part="snippet,statistics", id=channel_id),
            "fetch channel statistics",
        )
        stats_items = stats_resp.get("items") or []
        if not stats_items:
            raise NotFoundError("Could not retrieve channel statistics: channel not found.")
        details = stats_items[0]
        snippet = details.get("snippet", {})
        stats = details.get("statistics", {})

        videos_resp = _execute(
            self._youtube.search().list(
                part="snippet",
                channelId=channel_id,
                order="date",
                type="video",
                maxResults=RECENT_VIDEO_COUNT,
            ),
            "fetch channel videos",
        )
        recent = [
            VideoSummary(id=item["id"]["videoId"], title=item["snippet"]["title"])
            for item in videos_resp.get("items", [])
        ]

        return ChannelRecord(
            id=channel_id,
            title=snippet.get("title", ""),
            description=snippet.get("description", ""),
            thumbnail_url=_best_thumbnail(snippet.get("thumbnails", {})),
            stats=ChannelStats(
                view_count=int(stats.get("viewCount", 0)),
                subscriber_count=int(stats.get("subscriberCount", 0)),
                video_count=int(stats.get("videoCount", 0)),
            ),
            recent_videos=recent[:RECENT_VIDEO_COUNT],
        )

    def validate_key(self) -> bool:
        try:
            self._youtube.videos().list(part="id", id=_KEY_CHECK_VIDEO_ID).execute()
        except HttpError as e:
            logger.warning("YouTube API key check failed: %s", _error_message(e))
            return False
        return True
