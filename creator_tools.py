import logging
from collections.abc import Callable

from ai_analyzer import generate_channel_analysis, generate_keyword_ideas
from errors import MissingCredentialError, ValidationError
from models import ChannelRecord, ChannelReport, VideoIdea
from quota import CHANNEL_ANALYSIS_COST, QuotaTracker
from settings_store import SettingsStore
from youtube_api import YouTubeClient

logger = logging.getLogger(__name__)


def brainstorm_ideas(keyword: str, language: str) -> list[VideoIdea]:
    keyword = keyword.strip()
    if not keyword:
        raise ValidationError("Enter a keyword")
    ideas = generate_keyword_ideas(keyword, language)
    logger.info("Generated %d ideas for %r", len(ideas), keyword)
    return ideas


def analyze_channel(
    identifier: str,
    settings: SettingsStore,
    quota: QuotaTracker,
    on_progress: Callable[[str, str], None] | None = None,
    on_channel: Callable[[ChannelRecord], None] | None = None,
) -> ChannelReport:
    """
    Fetch a channel's public stats and recent uploads, then ask the AI for
    strengths, weaknesses, opportunities and video ideas.

    `on_channel` receives the fetched channel before the AI phase starts, so
    the caller still has it if the analysis fails.
    """
    api_key = settings.youtube_api_key
    if not api_key:
        raise MissingCredentialError("YouTube API key is not set")
    identifier = identifier.strip()
    if not identifier:
        raise ValidationError("Enter a channel name or handle")

    if on_progress:
        on_progress("fetching", f"Fetching channel data for {identifier}...")
    channel = YouTubeClient(api_key).fetch_channel(identifier)
    quota.increment_by(CHANNEL_ANALYSIS_COST)
    if on_channel:
        on_channel(channel)

    if on_progress:
        on_progress("analyzing", f"Analyzing {channel.title}...")
    analysis = generate_channel_analysis(channel, settings.language)

    return ChannelReport(channel=channel, analysis=analysis)
