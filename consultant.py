"""Benchmark video consulting workflow.

One run walks through: fetch the user's own video (improve mode only),
resolve and fetch the benchmark video, then ask the AI for a structured
growth analysis. The run snapshot is updated as each phase starts so a UI
can poll it, and whatever was fetched before a failure stays on it.
"""

import logging
import threading
from collections.abc import Callable

from ai_analyzer import generate_consulting
from errors import (
    BusyError,
    CreatorBoostError,
    InvalidInputError,
    MissingCredentialError,
    ValidationError,
    classify_error,
)
from models import ConsultingRun, VideoRecord, WorkflowMode, WorkflowState
from quota import KEYWORD_BENCHMARK_COST, VIDEO_LOOKUP_COST, QuotaTracker
from settings_store import SettingsStore
from youtube_api import YouTubeClient, extract_video_id

logger = logging.getLogger(__name__)

STEP_LABELS = {
    WorkflowState.FETCHING_USER: "Fetching your video...",
    WorkflowState.FETCHING_BENCHMARK: "Fetching benchmark video...",
    WorkflowState.GENERATING: "Generating analysis...",
}


class ConsultingOrchestrator:
    def __init__(
        self,
        settings: SettingsStore,
        quota: QuotaTracker,
        on_step: Callable[[str], None] | None = None,
    ):
        self.settings = settings
        self.quota = quota
        self.on_step = on_step
        self.current = ConsultingRun()
        self._busy = False
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._busy

    def reserve(self):
        """Mark the orchestrator busy ahead of a run started on another thread."""
        with self._lock:
            if self._busy:
                raise BusyError("A consulting run is already in progress")
            self._busy = True

    def run(
        self,
        benchmark_input: str,
        user_input: str = "",
        mode: WorkflowMode = WorkflowMode.NEW,
        reserved: bool = False,
    ) -> ConsultingRun:
        if not reserved:
            self.reserve()

        try:
            self.current = ConsultingRun(mode=mode)
            try:
                self._execute(benchmark_input.strip(), user_input.strip(), mode)
            except CreatorBoostError as e:
                logger.warning("Consulting run failed: %s", e)
                self._fail(e)
            except Exception as e:
                logger.exception("Consulting run failed unexpectedly")
                self._fail(e)
            finally:
                self.current.step_label = ""
            return self.current
        finally:
            self._busy = False

    def _fail(self, e: Exception):
        self.current.state = WorkflowState.ERROR
        self.current.error = classify_error(e)
        self.current.error_message = str(e)

    def _enter(self, state: WorkflowState):
        label = STEP_LABELS[state]
        self.current.state = state
        self.current.step_label = label
        if self.on_step:
            self.on_step(label)

    def _execute(self, benchmark_input: str, user_input: str, mode: WorkflowMode):
        api_key = self.settings.youtube_api_key
        if not api_key:
            raise MissingCredentialError("YouTube API key is not set")
        if not benchmark_input:
            raise ValidationError("Enter a benchmark video URL or keyword")
        is_comparative = mode == WorkflowMode.IMPROVE
        if is_comparative and not user_input:
            raise ValidationError("Enter the URL of your video")

        youtube = YouTubeClient(api_key)

        user_video: VideoRecord | None = None
        if is_comparative:
            self._enter(WorkflowState.FETCHING_USER)
            user_video_id = extract_video_id(user_input)
            if not user_video_id:
                raise InvalidInputError("Invalid URL for your video.")
            user_video = youtube.fetch_video(user_video_id)
            self.current.user_video = user_video
            self.quota.increment_by(VIDEO_LOOKUP_COST)

        self._enter(WorkflowState.FETCHING_BENCHMARK)
        benchmark_id = extract_video_id(benchmark_input)
        if benchmark_id:
            benchmark = youtube.fetch_video(benchmark_id)
            self.quota.increment_by(VIDEO_LOOKUP_COST)
        else:
            benchmark = youtube.search_benchmark_video(benchmark_input)
            self.quota.increment_by(KEYWORD_BENCHMARK_COST)
        self.current.benchmark_video = benchmark

        self._enter(WorkflowState.GENERATING)
        self.current.result = generate_consulting(
            benchmark, self.settings.language, user_video=user_video
        )
        self.current.state = WorkflowState.DONE
        logger.info(
            "Consulting run done (%s) for benchmark %s", self.current.result.body.kind, benchmark.id
        )
