from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from errors import ErrorCategory


class VideoStats(BaseModel):
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0


class VideoRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    tags: list[str] = []
    thumbnail_url: str = ""
    channel_title: str = ""
    stats: VideoStats = Field(default_factory=VideoStats)


class ChannelStats(BaseModel):
    view_count: int = 0
    subscriber_count: int = 0
    video_count: int = 0


class VideoSummary(BaseModel):
    id: str
    title: str


class ChannelRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    thumbnail_url: str = ""
    stats: ChannelStats = Field(default_factory=ChannelStats)
    recent_videos: list[VideoSummary] = Field(default=[], max_length=5)


class VideoIdea(BaseModel):
    title: str
    description: str
    tags: list[str] = []


class IdeaOutline(BaseModel):
    title: str
    description: str


class ChannelAnalysis(BaseModel):
    strengths: list[str]
    weaknesses: list[str]
    opportunities: list[str]
    video_ideas: list[IdeaOutline]


class ChannelReport(BaseModel):
    channel: ChannelRecord
    analysis: ChannelAnalysis | None = None


class BenchmarkAnalysis(BaseModel):
    title_hook: str
    content_strategy: str
    target_audience: str
    monetization_potential: str


class ScriptOutline(BaseModel):
    hook: str
    introduction: str
    main_points: list[str]
    call_to_action: str
    outro: str


class VideoProposal(BaseModel):
    kind: Literal["proposal"] = "proposal"
    titles: list[str]
    description: str
    tags: list[str]
    script: ScriptOutline
    thumbnail_concepts: list[str]


class UserVideoReview(BaseModel):
    strength: str
    weakness: str


class BenchmarkVideoReview(BaseModel):
    strength: str
    tactic_to_adopt: str


class ImprovementAreas(BaseModel):
    title: str
    thumbnail: str
    content: str


class ComparativeAnalysis(BaseModel):
    kind: Literal["comparative"] = "comparative"
    user_video: UserVideoReview
    benchmark_video: BenchmarkVideoReview
    improvement_areas: ImprovementAreas


ConsultingBody = Annotated[Union[VideoProposal, ComparativeAnalysis], Field(discriminator="kind")]


class ConsultingResult(BaseModel):
    benchmark_analysis: BenchmarkAnalysis
    body: ConsultingBody

    @property
    def is_comparative(self) -> bool:
        return self.body.kind == "comparative"


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    text: str


class WorkflowProgress(BaseModel):
    current_step_label: str = ""
    current: int = 0
    total: int = 0


class StoryboardScene(BaseModel):
    label: str
    prompt: str
    image_b64: str | None = None


class Storyboard(BaseModel):
    title: str
    scenes: list[StoryboardScene] = []
    progress: WorkflowProgress = Field(default_factory=WorkflowProgress)
    error: ErrorCategory | None = None
    error_message: str | None = None

    @property
    def completed(self) -> bool:
        return self.error is None and bool(self.scenes) and all(s.image_b64 for s in self.scenes)


class WorkflowMode(str, Enum):
    NEW = "new"
    IMPROVE = "improve"


class WorkflowState(str, Enum):
    IDLE = "idle"
    FETCHING_USER = "fetching_user"
    FETCHING_BENCHMARK = "fetching_benchmark"
    GENERATING = "generating"
    DONE = "done"
    ERROR = "error"


class ConsultingRun(BaseModel):
    mode: WorkflowMode = WorkflowMode.NEW
    state: WorkflowState = WorkflowState.IDLE
    step_label: str = ""
    user_video: VideoRecord | None = None
    benchmark_video: VideoRecord | None = None
    result: ConsultingResult | None = None
    error: ErrorCategory | None = None
    error_message: str | None = None
