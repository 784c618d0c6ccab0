import json

import pytest

import config
from errors import ValidationError
from settings_store import LANGUAGE, YOUTUBE_API_KEY, SettingsStore


def test_missing_file_reads_as_empty(tmp_path):
    store = SettingsStore(tmp_path / "nope" / "settings.json")

    assert store.get(YOUTUBE_API_KEY) is None
    assert store.get("anything", "fallback") == "fallback"


def test_values_survive_a_new_instance(tmp_path):
    path = tmp_path / "data" / "settings.json"
    store = SettingsStore(path)
    store.youtube_api_key = "  my-key  "
    store.language = "pt"

    reloaded = SettingsStore(path)
    assert reloaded.youtube_api_key == "my-key"
    assert reloaded.language == "pt"
    assert json.loads(path.read_text(encoding="utf-8"))[LANGUAGE] == "pt"


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")

    store = SettingsStore(path)

    assert store.get(YOUTUBE_API_KEY) is None
    store.set(YOUTUBE_API_KEY, "k")
    assert SettingsStore(path).get(YOUTUBE_API_KEY) == "k"


def test_youtube_key_falls_back_to_environment(store, monkeypatch):
    monkeypatch.setattr(config, "YOUTUBE_API_KEY", "env-key")

    assert store.youtube_api_key == "env-key"
    store.youtube_api_key = "user-key"
    assert store.youtube_api_key == "user-key"


def test_language_defaults_and_validation(store, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_LANGUAGE", "es")
    assert store.language == "es"

    with pytest.raises(ValidationError):
        store.language = "fr"
    assert store.language == "es"


def test_unknown_persisted_language_falls_back(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DEFAULT_LANGUAGE", "en")
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({LANGUAGE: "xx"}), encoding="utf-8")

    assert SettingsStore(path).language == "en"


def test_clearing_the_key_overrides_environment(store, monkeypatch):
    monkeypatch.setattr(config, "YOUTUBE_API_KEY", "env-key")

    store.youtube_api_key = ""

    assert store.youtube_api_key == ""
    assert SettingsStore(store.path).youtube_api_key == ""
