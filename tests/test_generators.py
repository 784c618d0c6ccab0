from unittest.mock import patch

import pytest

from errors import ErrorCategory, RequestFailedError
from generators import generate_storyboard, generate_thumbnail
from models import StoryboardScene


def _scenes(n):
    return [StoryboardScene(label=f"Scene {i}", prompt=f"prompt {i}") for i in range(1, n + 1)]


@pytest.fixture
def prompts():
    with patch("ai_analyzer.generate_storyboard_prompts") as fn:
        yield fn


@pytest.fixture
def image():
    with patch("ai_analyzer.generate_image") as fn:
        yield fn


def test_thumbnail_wraps_concept(image):
    image.return_value = "aW1n"

    assert generate_thumbnail("Shocked chef holding pasta") == "aW1n"

    prompt = image.call_args.args[0]
    assert "Shocked chef holding pasta" in prompt
    assert image.call_args.kwargs["aspect_ratio"] == "16:9"


def test_storyboard_with_no_scenes_is_empty_result(prompts, image, outline):
    prompts.return_value = []

    board = generate_storyboard("Title", outline, "en")

    assert board.error == ErrorCategory.EMPTY_RESULT
    assert board.scenes == []
    image.assert_not_called()


def test_storyboard_draws_every_scene_in_order(prompts, image, outline):
    prompts.return_value = _scenes(4)
    image.side_effect = ["img1", "img2", "img3", "img4"]
    progress = []

    board = generate_storyboard(
        "Title",
        outline,
        "es",
        on_progress=lambda b: progress.append((b.progress.current, b.progress.total)),
    )

    prompts.assert_called_once_with("Title", outline, "es")
    assert [call.args[0] for call in image.call_args_list] == ["prompt 1", "prompt 2", "prompt 3", "prompt 4"]
    assert [s.image_b64 for s in board.scenes] == ["img1", "img2", "img3", "img4"]
    assert board.error is None
    assert board.completed
    assert (board.progress.current, board.progress.total) == (4, 4)
    assert [p for p in progress if p[1]] == [(0, 4), (1, 4), (2, 4), (3, 4), (4, 4), (4, 4)]


def test_storyboard_failure_keeps_finished_scenes(prompts, image, outline):
    prompts.return_value = _scenes(4)
    image.side_effect = ["img1", RequestFailedError("Failed to fetch image")]

    board = generate_storyboard("Title", outline, "en")

    assert image.call_count == 2
    assert board.scenes[0].image_b64 == "img1"
    assert [s.image_b64 for s in board.scenes[1:]] == [None, None, None]
    assert board.error == ErrorCategory.REQUEST_FAILED
    assert board.progress.current == 1
    assert not board.completed


def test_storyboard_prompt_failure_is_classified(prompts, image, outline):
    prompts.side_effect = RuntimeError("boom")

    board = generate_storyboard("Title", outline, "en")

    assert board.error == ErrorCategory.UNKNOWN
    assert board.error_message == "boom"
    image.assert_not_called()
