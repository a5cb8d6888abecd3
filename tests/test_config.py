import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="memo-grader-"))

from app import create_app  # noqa: E402
from config import Config, ConfigError, validate_config  # noqa: E402


def test_validate_config_rejects_missing_secret():
    with pytest.raises(ConfigError, match="SECRET_KEY"):
        validate_config({"SECRET_KEY": ""})


def test_validate_config_accepts_supplied_secret():
    validate_config({"SECRET_KEY": "supplied"})


def test_create_app_refuses_to_start_without_secret(monkeypatch):
    monkeypatch.setattr(Config, "SECRET_KEY", "")
    with pytest.raises(ConfigError):
        create_app()


def test_provider_defaults():
    app = create_app()
    assert app.config["OPENAI_API_BASE_URL"] == "https://api.openai.com/v1"
    assert app.config["OPENAI_REQUEST_TIMEOUT"] > 0
    assert app.config["OPENAI_MODEL"]
