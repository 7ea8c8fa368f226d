"""Unit tests for application settings configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from app.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_pagination_defaults():
    settings = Settings(_env_file=None)
    assert settings.default_page_size == 10
    assert settings.page_sizes == [10, 20, 30, 40, 50]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://archivo@db/registry")
    monkeypatch.setenv("LOG_LEVEL_STORE", "DEBUG")
    settings = Settings(_env_file=None)
    assert settings.database_url == "postgresql://archivo@db/registry"
    assert settings.log_level_store == "DEBUG"


def test_default_page_size_must_be_an_allowed_size(monkeypatch):
    monkeypatch.setenv("DEFAULT_PAGE_SIZE", "15")
    with pytest.raises(ValidationError, match="default_page_size"):
        Settings(_env_file=None)

    monkeypatch.setenv("PAGE_SIZES", "[15, 30]")
    assert Settings(_env_file=None).default_page_size == 15
