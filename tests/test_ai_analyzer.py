import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError as PydanticValidationError

import ai_analyzer
import config
from conftest import completion, make_video, stream_chunk
from errors import EmptyResultError, MissingCredentialError
from models import ChannelRecord, ChatMessage, ComparativeAnalysis, VideoProposal

BENCHMARK_JSON = {
    "title_hook": "Curiosity gap",
    "content_strategy": "Fast cuts",
    "target_audience": "Home cooks",
    "monetization_potential": "Sponsorships",
}

PROPOSAL_JSON = {
    "titles": ["A", "B", "C"],
    "description": "desc",
    "tags": ["x"],
    "script": {
        "hook": "h",
        "introduction": "i",
        "main_points": ["p1", "p2"],
        "call_to_action": "cta",
        "outro": "o",
    },
    "thumbnail_concepts": ["t1", "t2"],
}

COMPARATIVE_JSON = {
    "user_video": {"strength": "s", "weakness": "w"},
    "benchmark_video": {"strength": "bs", "tactic_to_adopt": "t"},
    "improvement_areas": {"title": "ti", "thumbnail": "th", "content": "c"},
}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    with patch("ai_analyzer.OpenAI") as cls:
        yield cls.return_value


def _schema_of(client) -> dict:
    return client.chat.completions.create.call_args.kwargs["response_format"]["json_schema"]


def test_missing_openai_key(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "")
    with pytest.raises(MissingCredentialError):
        ai_analyzer.generate_keyword_ideas("cooking", "en")


def test_keyword_ideas(client):
    client.chat.completions.create.return_value = completion(
        json.dumps({"ideas": [{"title": "T", "description": "D", "tags": ["a", "b"]}]})
    )

    ideas = ai_analyzer.generate_keyword_ideas("cooking", "es")

    assert [i.title for i in ideas] == ["T"]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == config.OPENAI_MODEL
    assert "Spanish" in kwargs["messages"][-1]["content"]
    assert _schema_of(client)["strict"] is True


def test_consulting_without_user_video_is_a_proposal(client):
    client.chat.completions.create.return_value = completion(
        json.dumps({"benchmark_analysis": BENCHMARK_JSON, "consulting_result": PROPOSAL_JSON})
    )

    result = ai_analyzer.generate_consulting(make_video(), "en")

    assert isinstance(result.body, VideoProposal)
    assert result.body.kind == "proposal"
    assert result.body.script.main_points == ["p1", "p2"]
    assert result.benchmark_analysis.title_hook == "Curiosity gap"
    schema = _schema_of(client)["schema"]
    assert "titles" in schema["properties"]["consulting_result"]["properties"]


def test_consulting_with_user_video_is_comparative(client):
    client.chat.completions.create.return_value = completion(
        json.dumps({"benchmark_analysis": BENCHMARK_JSON, "consulting_result": COMPARATIVE_JSON})
    )

    result = ai_analyzer.generate_consulting(make_video(), "en", user_video=make_video("mine0000001", "Mine"))

    assert isinstance(result.body, ComparativeAnalysis)
    assert result.body.kind == "comparative"
    assert result.body.benchmark_video.tactic_to_adopt == "t"
    prompt = client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
    assert "User's Video" in prompt
    schema = _schema_of(client)["schema"]
    assert "improvement_areas" in schema["properties"]["consulting_result"]["properties"]


def test_consulting_kind_follows_request_not_reply(client):
    # A proposal-mode request must not turn into a comparison even if the reply looks like one
    client.chat.completions.create.return_value = completion(
        json.dumps({"benchmark_analysis": BENCHMARK_JSON, "consulting_result": COMPARATIVE_JSON})
    )

    with pytest.raises(PydanticValidationError):
        ai_analyzer.generate_consulting(make_video(), "en")


def test_channel_analysis(client):
    client.chat.completions.create.return_value = completion(
        json.dumps({
            "strengths": ["s"],
            "weaknesses": ["w"],
            "opportunities": ["o"],
            "video_ideas": [{"title": "t", "description": "d"}],
        })
    )
    channel = ChannelRecord(id="UC1", title="Chef", recent_videos=[{"id": "v1", "title": "Pasta night"}])

    analysis = ai_analyzer.generate_channel_analysis(channel, "en")

    assert analysis.video_ideas[0].title == "t"
    prompt = client.chat.completions.create.call_args.kwargs["messages"][-1]["content"]
    assert '"Pasta night"' in prompt


def test_storyboard_prompts(client, outline):
    client.chat.completions.create.return_value = completion(
        json.dumps({"scenes": [{"scene": "Opening Hook", "prompt": "wide shot"}]})
    )

    scenes = ai_analyzer.generate_storyboard_prompts("Title", outline, "en")

    assert scenes[0].label == "Opening Hook"
    assert scenes[0].prompt == "wide shot"
    assert scenes[0].image_b64 is None


def test_full_script_returns_text(client, outline):
    client.chat.completions.create.return_value = completion("INT. KITCHEN - DAY")

    script = ai_analyzer.generate_full_script(outline, "Pasta", "en")

    assert script == "INT. KITCHEN - DAY"
    prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert "Stop scrolling" in prompt
    assert "- Prep" in prompt


def test_generate_image(client):
    client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="aW1hZ2U=")])

    assert ai_analyzer.generate_image("a chef", aspect_ratio="16:9") == "aW1hZ2U="
    kwargs = client.images.generate.call_args.kwargs
    assert kwargs["size"] == "1792x1024"
    assert kwargs["response_format"] == "b64_json"


def test_generate_image_empty(client):
    client.images.generate.return_value = SimpleNamespace(data=[])

    with pytest.raises(EmptyResultError):
        ai_analyzer.generate_image("a chef")


def test_stream_chat_yields_fragments_and_maps_roles(client):
    client.chat.completions.create.return_value = iter([
        stream_chunk("Hel"),
        SimpleNamespace(choices=[]),
        stream_chunk(None),
        stream_chunk("lo"),
    ])
    history = [ChatMessage(role="user", text="q1"), ChatMessage(role="model", text="a1")]

    fragments = list(ai_analyzer.stream_chat(history, "q2", "en"))

    assert fragments == ["Hel", "lo"]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["stream"] is True
    assert [m["role"] for m in kwargs["messages"]] == ["system", "user", "assistant", "user"]
    assert kwargs["messages"][-1]["content"] == "q2"


def test_stream_chat_is_lazy(monkeypatch):
    monkeypatch.setattr(config, "OPENAI_API_KEY", "sk-test")
    with patch("ai_analyzer.OpenAI") as cls:
        gen = ai_analyzer.stream_chat([], "hi", "en")
        cls.assert_not_called()
        cls.return_value = MagicMock()
        cls.return_value.chat.completions.create.return_value = iter([stream_chunk("x")])
        assert list(gen) == ["x"]
