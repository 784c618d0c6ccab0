"""Local settings persisted as a small JSON document.

Holds the runtime-editable YouTube API key, the quota counter with its last
reset date, and the display language. Every write rewrites the file so the
values survive restarts of the CLI or the web app.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

import config
from errors import ValidationError

logger = logging.getLogger(__name__)

YOUTUBE_API_KEY = "youtube_api_key"
QUOTA_USED = "quota_used"
QUOTA_LAST_RESET = "quota_last_reset"
LANGUAGE = "language"


class SettingsStore:
    def __init__(self, path: str | Path = config.SETTINGS_FILE):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any):
        with self._lock:
            self._data[key] = value
            self._save()

    def update(self, values: dict[str, Any]):
        with self._lock:
            self._data.update(values)
            self._save()

    @property
    def youtube_api_key(self) -> str:
        # A stored value, even an empty one, overrides the .env key
        value = self.get(YOUTUBE_API_KEY)
        if value is None:
            value = config.YOUTUBE_API_KEY
        return value.strip()

    @youtube_api_key.setter
    def youtube_api_key(self, value: str):
        self.set(YOUTUBE_API_KEY, value.strip())

    @property
    def language(self) -> str:
        lang = self.get(LANGUAGE)
        return lang if lang in config.LANGUAGES else config.DEFAULT_LANGUAGE

    @language.setter
    def language(self, value: str):
        if value not in config.LANGUAGES:
            raise ValidationError(f"Unsupported language: {value!r}")
        self.set(LANGUAGE, value)
