"""Shared fixtures. All SDK calls are mocked; nothing touches the network."""

import os
import tempfile
from datetime import date
from types import SimpleNamespace

# Must happen before config is imported anywhere
os.environ["CREATOR_BOOST_DATA_DIR"] = tempfile.mkdtemp(prefix="creator-boost-tests-")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ["YOUTUBE_API_KEY"] = ""

import pytest

from models import (
    BenchmarkAnalysis,
    BenchmarkVideoReview,
    ComparativeAnalysis,
    ConsultingResult,
    ImprovementAreas,
    ScriptOutline,
    UserVideoReview,
    VideoProposal,
    VideoRecord,
    VideoStats,
)
from quota import QuotaTracker
from settings_store import SettingsStore


class DayClock:
    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture
def store(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture
def keyed_store(store):
    store.youtube_api_key = "yt-test-key"
    store.language = "en"
    return store


@pytest.fixture
def clock():
    return DayClock(date(2026, 3, 1))


@pytest.fixture
def quota(keyed_store, clock):
    return QuotaTracker(keyed_store, daily_limit=10_000, today=clock)


def make_video(video_id="abc12345678", title="Benchmark") -> VideoRecord:
    return VideoRecord(
        id=video_id,
        title=title,
        description="A video",
        tags=["tag"],
        thumbnail_url="https://i.ytimg.com/vi/x/hqdefault.jpg",
        channel_title="Some Channel",
        stats=VideoStats(view_count=1000, like_count=100, comment_count=10),
    )


@pytest.fixture
def outline():
    return ScriptOutline(
        hook="Stop scrolling",
        introduction="Today we cook",
        main_points=["Prep", "Cook", "Serve"],
        call_to_action="Subscribe",
        outro="Bye",
    )


@pytest.fixture
def benchmark_analysis():
    return BenchmarkAnalysis(
        title_hook="Curiosity gap",
        content_strategy="Fast cuts",
        target_audience="Home cooks",
        monetization_potential="Sponsorships",
    )


@pytest.fixture
def proposal_result(benchmark_analysis, outline):
    return ConsultingResult(
        benchmark_analysis=benchmark_analysis,
        body=VideoProposal(
            titles=["T1", "T2", "T3"],
            description="desc",
            tags=["a", "b"],
            script=outline,
            thumbnail_concepts=["c1", "c2"],
        ),
    )


@pytest.fixture
def comparative_result(benchmark_analysis):
    return ConsultingResult(
        benchmark_analysis=benchmark_analysis,
        body=ComparativeAnalysis(
            user_video=UserVideoReview(strength="s", weakness="w"),
            benchmark_video=BenchmarkVideoReview(strength="s", tactic_to_adopt="t"),
            improvement_areas=ImprovementAreas(title="t", thumbnail="th", content="c"),
        ),
    )


def completion(content: str):
    """Shape of an OpenAI chat completion with a single message."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def stream_chunk(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])
