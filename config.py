import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DATA_DIR = Path(os.environ.get("DATA_DIR") or BASE_DIR / "data")
SUBMISSIONS_DIR = DATA_DIR / "submissions"

REQUIRED_SETTINGS = ("SECRET_KEY",)


class ConfigError(RuntimeError):
    pass


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "")
    SQLALCHEMY_DATABASE_URI = (
        os.environ.get("DATABASE_URL") or f"sqlite:///{(DATA_DIR / 'app.db').as_posix()}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", 50 * 1024 * 1024))

    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    OPENAI_API_BASE_URL = os.environ.get("OPENAI_API_BASE_URL") or "https://api.openai.com/v1"
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL") or "gpt-4.1-mini"
    OPENAI_WORKFLOW_ID = os.environ.get("OPENAI_WORKFLOW_ID", "")
    OPENAI_REQUEST_TIMEOUT = int(os.environ.get("OPENAI_REQUEST_TIMEOUT") or "120")


def validate_config(config):
    missing = [key for key in REQUIRED_SETTINGS if not config.get(key)]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")
