"""Follow-on jobs unlocked by a finished video proposal.

Thumbnails and full scripts are single AI calls. Storyboards first ask for
scene prompts, then render one image per scene strictly one after another,
reporting progress between scenes.
"""

import logging
from collections.abc import Callable

import ai_analyzer
from errors import CreatorBoostError, EmptyResultError, classify_error
from models import ScriptOutline, Storyboard, WorkflowProgress

logger = logging.getLogger(__name__)

THUMBNAIL_PROMPT = (
    'Create a cinematic, high-impact YouTube thumbnail based on this concept: "{concept}". '
    "Ensure it is visually striking, easy to read, and evokes curiosity. Aspect ratio 16:9."
)


def generate_thumbnail(concept: str) -> str:
    return ai_analyzer.generate_image(THUMBNAIL_PROMPT.format(concept=concept), aspect_ratio="16:9")


def generate_full_script(outline: ScriptOutline, title: str, language: str) -> str:
    return ai_analyzer.generate_full_script(outline, title, language)


def generate_storyboard(
    title: str,
    outline: ScriptOutline,
    language: str,
    on_progress: Callable[[Storyboard], None] | None = None,
) -> Storyboard:
    storyboard = Storyboard(title=title, progress=WorkflowProgress(current_step_label="Writing scenes..."))

    def report():
        if on_progress:
            on_progress(storyboard)

    report()
    try:
        scenes = ai_analyzer.generate_storyboard_prompts(title, outline, language)
        if not scenes:
            raise EmptyResultError("No scenes generated.")

        storyboard.scenes = scenes
        storyboard.progress = WorkflowProgress(
            current_step_label="Drawing scenes...", current=0, total=len(scenes)
        )
        report()

        # Strictly sequential; progress is reported after each scene
        for i, scene in enumerate(scenes):
            scene.image_b64 = ai_analyzer.generate_image(scene.prompt, aspect_ratio="16:9")
            storyboard.progress.current = i + 1
            report()
    except Exception as e:
        if isinstance(e, CreatorBoostError):
            logger.warning("Storyboard stopped: %s", e)
        else:
            logger.exception("Storyboard stopped")
        storyboard.error = classify_error(e)
        storyboard.error_message = str(e)

    storyboard.progress.current_step_label = ""
    report()
    return storyboard
