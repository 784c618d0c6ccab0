import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

load_dotenv()

OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_IMAGE_MODEL: str = os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3")
YOUTUBE_API_KEY: str = os.getenv("YOUTUBE_API_KEY", "")

DATA_DIR: Path = Path(
    os.getenv("CREATOR_BOOST_DATA_DIR", str(Path.home() / ".creator-boost"))
).expanduser()
SETTINGS_FILE: Path = Path(os.getenv("SETTINGS_FILE", str(DATA_DIR / "settings.json")))

DAILY_QUOTA_LIMIT: int = int(os.getenv("DAILY_QUOTA_LIMIT", "10000"))
CHAT_SESSION_LIMIT: int = int(os.getenv("CHAT_SESSION_LIMIT", "100"))
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "es")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

LANGUAGES: dict[str, str] = {
    "en": "English",
    "es": "Spanish",
    "pt": "Portuguese",
}


def validate():
    if not OPENAI_API_KEY:
        raise SystemExit("OPENAI_API_KEY not set in .env")


def setup_logging(level: str | None = None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # SDK request logs are noisy at INFO
    for name in ("httpx", "openai", "googleapiclient.discovery_cache"):
        logging.getLogger(name).setLevel(logging.WARNING)
