import json
import logging
from collections.abc import Iterator

from openai import OpenAI

import config
from errors import EmptyResultError, MissingCredentialError
from models import (
    BenchmarkAnalysis,
    ChannelAnalysis,
    ChannelRecord,
    ChatMessage,
    ComparativeAnalysis,
    ConsultingResult,
    ScriptOutline,
    StoryboardScene,
    VideoIdea,
    VideoProposal,
    VideoRecord,
)

logger = logging.getLogger(__name__)

CONSULTANT_PROMPT = (
    "You are a world-class YouTube growth consultant with 20 years of experience, "
    "specializing in viral video strategy. Your analysis is sharp, actionable, and data-driven."
)

CHAT_SYSTEM_PROMPT = (
    "You are 'Creator Boost AI', an expert YouTube consultant. Your goal is to provide "
    "actionable, data-driven advice to help content creators grow their channels and "
    "monetize their content. Be encouraging, specific, and professional. Use markdown "
    "lists, bold and italics to make your responses easy to read."
)

# OpenAI image sizes closest to each aspect ratio
IMAGE_SIZES = {
    "16:9": "1792x1024",
    "9:16": "1024x1792",
    "1:1": "1024x1024",
}


def _string_list() -> dict:
    return {"type": "array", "items": {"type": "string"}}


def _obj(properties: dict) -> dict:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties),
        "additionalProperties": False,
    }


_STR = {"type": "string"}

_IDEAS_SCHEMA = _obj({
    "ideas": {
        "type": "array",
        "items": _obj({"title": _STR, "description": _STR, "tags": _string_list()}),
    }
})

_CHANNEL_ANALYSIS_SCHEMA = _obj({
    "strengths": _string_list(),
    "weaknesses": _string_list(),
    "opportunities": _string_list(),
    "video_ideas": {
        "type": "array",
        "items": _obj({"title": _STR, "description": _STR}),
    },
})

_BENCHMARK_SCHEMA = _obj({
    "title_hook": _STR,
    "content_strategy": _STR,
    "target_audience": _STR,
    "monetization_potential": _STR,
})

_SCRIPT_SCHEMA = _obj({
    "hook": _STR,
    "introduction": _STR,
    "main_points": _string_list(),
    "call_to_action": _STR,
    "outro": _STR,
})

_PROPOSAL_SCHEMA = _obj({
    "titles": _string_list(),
    "description": _STR,
    "tags": _string_list(),
    "script": _SCRIPT_SCHEMA,
    "thumbnail_concepts": _string_list(),
})

_COMPARATIVE_SCHEMA = _obj({
    "user_video": _obj({"strength": _STR, "weakness": _STR}),
    "benchmark_video": _obj({"strength": _STR, "tactic_to_adopt": _STR}),
    "improvement_areas": _obj({"title": _STR, "thumbnail": _STR, "content": _STR}),
})

_STORYBOARD_SCHEMA = _obj({
    "scenes": {
        "type": "array",
        "items": _obj({"scene": _STR, "prompt": _STR}),
    }
})


def _consulting_schema(is_comparative: bool) -> dict:
    return _obj({
        "benchmark_analysis": _BENCHMARK_SCHEMA,
        "consulting_result": _COMPARATIVE_SCHEMA if is_comparative else _PROPOSAL_SCHEMA,
    })


def _response_format(name: str, schema: dict) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {"name": name, "schema": schema, "strict": True},
    }


def _build_client() -> OpenAI:
    if not config.OPENAI_API_KEY:
        raise MissingCredentialError("OPENAI_API_KEY is not set")
    return OpenAI(api_key=config.OPENAI_API_KEY)


def _language_instruction(language: str) -> str:
    name = config.LANGUAGES.get(language, config.LANGUAGES["en"])
    return f"Your response must be in {name}."


def _generate_json(prompt: str, name: str, schema: dict, system: str | None = None) -> dict:
    client = _build_client()
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    response = client.chat.completions.create(
        model=config.OPENAI_MODEL,
        messages=messages,
        response_format=_response_format(name, schema),
        temperature=0.7,
    )
    content = response.choices[0].message.content or ""
    return json.loads(content.strip())


def _generate_text(prompt: str) -> str:
    client = _build_client()
    response = client.chat.completions.create(
        model=config.OPENAI_MODEL,
        messages=[{"role": "user", "content": prompt}],
    )
    return response.choices[0].message.content or ""


def _format_video(video: VideoRecord, label: str) -> str:
    description = video.description[:300]
    tags = ", ".join(video.tags[:10])
    return (
        f"**{label} Details:**\n"
        f"- **Title:** {video.title}\n"
        f"- **Views:** {video.stats.view_count:,}\n"
        f"- **Likes:** {video.stats.like_count:,}\n"
        f"- **Description:** {description}...\n"
        f"- **Tags:** {tags}\n"
    )


def _format_outline(title: str, outline: ScriptOutline) -> str:
    points = "\n".join(f"  - {p}" for p in outline.main_points)
    return (
        f"**Video Title:** {title}\n\n"
        f"**Script Outline:**\n"
        f"- **Hook:** {outline.hook}\n"
        f"- **Introduction:** {outline.introduction}\n"
        f"- **Main Points:**\n{points}\n"
        f"- **Call to Action:** {outline.call_to_action}\n"
        f"- **Outro:** {outline.outro}\n"
    )


def generate_keyword_ideas(keyword: str, language: str) -> list[VideoIdea]:
    prompt = (
        f'A user wants to create content about "{keyword}". Generate 5 creative, '
        "high-engagement video ideas. For each idea, provide a catchy, SEO-optimized title, "
        "a brief description, and 3-5 relevant keywords/tags. "
        f"{_language_instruction(language)}"
    )
    data = _generate_json(
        prompt,
        "video_ideas",
        _IDEAS_SCHEMA,
        system="You are an expert YouTube growth strategist.",
    )
    return [VideoIdea(**item) for item in data.get("ideas", [])]


def generate_channel_analysis(channel: ChannelRecord, language: str) -> ChannelAnalysis:
    """SWOT-style analysis grounded only in the fetched channel data."""
    titles = "\n".join(f'- "{v.title}"' for v in channel.recent_videos)
    prompt = (
        "Analyze the following channel, using data fetched directly from the YouTube API:\n\n"
        f"**Channel Name:** {channel.title}\n"
        f"**Subscribers:** {channel.stats.subscriber_count:,}\n"
        f"**Total Views:** {channel.stats.view_count:,}\n"
        f"**Total Videos:** {channel.stats.video_count:,}\n\n"
        f"**Recent Video Titles:**\n{titles}\n\n"
        "Based only on this data, provide at least 3 perceived strengths, at least 3 "
        "potential weaknesses, at least 3 actionable growth opportunities, and three "
        "concrete video ideas (title and description) that capitalize on those "
        f"opportunities. {_language_instruction(language)}"
    )
    data = _generate_json(
        prompt,
        "channel_analysis",
        _CHANNEL_ANALYSIS_SCHEMA,
        system="You are a professional YouTube channel analyst.",
    )
    return ChannelAnalysis(**data)


def generate_consulting(
    benchmark: VideoRecord,
    language: str,
    user_video: VideoRecord | None = None,
) -> ConsultingResult:
    """
    Analyze a benchmark video. Without a user video the result body is a
    blueprint for a new video; with one it is a side-by-side comparison.
    The body's kind follows the request, not the shape of the reply.
    """
    is_comparative = user_video is not None

    parts = [
        "I need a deep analysis of the following video(s).",
        _format_video(benchmark, "Benchmark Video"),
    ]
    if is_comparative:
        parts.append(_format_video(user_video, "User's Video"))
        parts.append(
            "**Task:**\n"
            "1. Briefly analyze the benchmark video's title hook, content strategy, "
            "target audience, and monetization potential.\n"
            "2. Compare the user's video to the benchmark. Identify the single biggest "
            "strength and weakness for each.\n"
            "3. Give concrete improvement suggestions for the user's video title, "
            "thumbnail, and content based on the benchmark's success."
        )
    else:
        parts.append(
            "**Task:**\n"
            "1. Deeply analyze the benchmark video's title hook, content strategy, "
            "target audience, and monetization potential.\n"
            "2. Create a complete blueprint for a NEW video that could achieve similar or "
            "greater success: 3 alternative titles, a full SEO-optimized description, "
            "10-15 tags, a structured script outline (hook, introduction, main points, "
            "call to action, outro) and 2 detailed thumbnail concepts."
        )
    parts.append(_language_instruction(language))

    data = _generate_json(
        "\n\n".join(parts),
        "consulting_analysis",
        _consulting_schema(is_comparative),
        system=CONSULTANT_PROMPT,
    )

    body_data = data["consulting_result"]
    if is_comparative:
        body = ComparativeAnalysis(**body_data)
    else:
        body = VideoProposal(**body_data)
    return ConsultingResult(
        benchmark_analysis=BenchmarkAnalysis(**data["benchmark_analysis"]),
        body=body,
    )


def generate_full_script(outline: ScriptOutline, title: str, language: str) -> str:
    prompt = (
        "You are a professional YouTube scriptwriter. Based on the following video title "
        "and script outline, write a complete, engaging, and detailed script for an 8-10 "
        "minute video. Include spoken lines, camera shot suggestions (e.g. 'close-up', "
        "'wide shot'), and on-screen text/graphics callouts. "
        f"{_language_instruction(language)}\n\n{_format_outline(title, outline)}"
    )
    return _generate_text(prompt)


def generate_storyboard_prompts(
    title: str, outline: ScriptOutline, language: str
) -> list[StoryboardScene]:
    prompt = (
        "You are a creative director. Based on the following video title and script "
        "outline, break the video down into 4 key visual scenes for a compelling "
        "storyboard. For each scene, provide a short title and a detailed prompt for an AI "
        "image generator describing the setting, characters, mood, and camera angle. "
        f"{_language_instruction(language)}\n\n{_format_outline(title, outline)}"
    )
    data = _generate_json(prompt, "storyboard_prompts", _STORYBOARD_SCHEMA)
    return [
        StoryboardScene(label=item["scene"], prompt=item["prompt"])
        for item in data.get("scenes", [])
    ]


def generate_image(prompt: str, aspect_ratio: str = "16:9") -> str:
    """Generate one image and return it base64-encoded."""
    client = _build_client()
    response = client.images.generate(
        model=config.OPENAI_IMAGE_MODEL,
        prompt=prompt,
        n=1,
        size=IMAGE_SIZES.get(aspect_ratio, IMAGE_SIZES["16:9"]),
        response_format="b64_json",
    )
    if not response.data or not response.data[0].b64_json:
        raise EmptyResultError("Image generation failed to produce an image.")
    return response.data[0].b64_json


def stream_chat(history: list[ChatMessage], message: str, language: str) -> Iterator[str]:
    """Yield reply fragments for `message` in the order they arrive."""
    client = _build_client()
    messages = [{"role": "system", "content": f"{CHAT_SYSTEM_PROMPT} {_language_instruction(language)}"}]
    for m in history:
        messages.append({
            "role": "assistant" if m.role == "model" else "user",
            "content": m.text,
        })
    messages.append({"role": "user", "content": message})

    stream = client.chat.completions.create(
        model=config.OPENAI_MODEL,
        messages=messages,
        stream=True,
    )
    for chunk in stream:
        if not chunk.choices:
            continue
        text = chunk.choices[0].delta.content
        if text:
            yield text
