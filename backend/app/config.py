from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings
from functools import lru_cache

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Registro de Archivos API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./data/registry.db"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Authentication
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 480
    bcrypt_rounds: int = 12
    bootstrap_admin_email: str = ""
    bootstrap_admin_password: str = ""

    # Record table pagination
    default_page_size: int = 10
    page_sizes: list[int] = [10, 20, 30, 40, 50]

    # Import uploads
    max_import_size_mb: int = 10

    # Logging — per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — SQL queries
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_store: str = "INFO"            # RecordStore mutations and sessions
    log_level_import: str = "INFO"           # Spreadsheet import pipeline

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "Settings":
        if not self.page_sizes or any(size <= 0 for size in self.page_sizes):
            raise ValueError("page_sizes must list positive sizes")
        if self.default_page_size not in self.page_sizes:
            raise ValueError(
                f"default_page_size {self.default_page_size} is not one of {self.page_sizes}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
