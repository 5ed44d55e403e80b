"""Application settings loaded from environment / .env file.

Config precedence (highest to lowest):
    1. Environment variables
    2. ``.env`` file in project root
    3. Defaults defined in this module

Secrets (API keys) are never exposed in ``repr()``, ``str()``, or logs.
"""

from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is three levels up from this file (backend/app/core/settings.py)
_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_DEFAULT_DB_PATH = str(_PROJECT_ROOT / "data" / "app.db")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_host: str = "127.0.0.1"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    site_url: str = "http://localhost:8000"

    # Database: override via APP_DB_PATH, or DATABASE_URL for Postgres
    app_db_path: str = _DEFAULT_DB_PATH
    database_url_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "database_url_override"),
    )

    @property
    def database_url(self) -> str:
        """Connection URL: ``DATABASE_URL`` if set, else SQLite at ``app_db_path``."""
        if self.database_url_override:
            return self.database_url_override
        return f"sqlite:///{self.app_db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # Managed auth service (Supabase-compatible)
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    auth_timeout_seconds: int = 10

    @property
    def is_auth_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    # LLM provider keys (Gemini preferred, then Anthropic, then OpenAI)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-pro"
    anthropic_api_key: str | None = None
    openai_api_key: str | None = None
    llm_timeout_seconds: int = 30

    @property
    def is_llm_configured(self) -> bool:
        """Return True if at least one LLM API key is set."""
        return bool(self.gemini_api_key or self.anthropic_api_key or self.openai_api_key)

    @model_validator(mode="after")
    def _validate_db_path(self) -> "Settings":
        """Ensure the DB path parent directory exists or can be created."""
        if self.database_url_override:
            return self
        parent = Path(self.app_db_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = (
                f"Cannot create database directory '{parent}': {exc}. "
                f"Set APP_DB_PATH to a writable location."
            )
            raise ValueError(msg) from exc
        return self

    def safe_dump(self) -> dict[str, object]:
        """Return settings dict with secrets masked — safe for logging."""
        return {
            "api_host": self.api_host,
            "api_port": self.api_port,
            "debug": self.debug,
            "log_level": self.log_level,
            "site_url": self.site_url,
            "database": "sqlite" if self.is_sqlite else "external",
            "app_db_path": self.app_db_path if self.is_sqlite else None,
            "supabase_url": self.supabase_url,
            "is_auth_configured": self.is_auth_configured,
            "gemini_model": self.gemini_model,
            "llm_timeout_seconds": self.llm_timeout_seconds,
            "is_llm_configured": self.is_llm_configured,
        }


def verify_configuration(cfg: Settings) -> list[str]:
    """Return a list of configuration problems (empty when deployable).

    Problems are human-readable and never include secret values.
    """
    problems: list[str] = []

    if not cfg.supabase_url:
        problems.append("SUPABASE_URL is not set (example: https://your-project-ref.supabase.co)")
    elif not cfg.supabase_url.startswith("https://"):
        problems.append("SUPABASE_URL must start with https://")

    if not cfg.supabase_anon_key:
        problems.append("SUPABASE_ANON_KEY is not set")
    elif not cfg.supabase_anon_key.startswith("eyJ"):
        problems.append("SUPABASE_ANON_KEY does not look like a JWT (expected prefix 'eyJ')")

    if not cfg.site_url.startswith(("http://", "https://")):
        problems.append("SITE_URL must start with http:// or https://")

    if not cfg.is_llm_configured:
        problems.append(
            "No AI provider key is set (GEMINI_API_KEY, ANTHROPIC_API_KEY or OPENAI_API_KEY); "
            "AI features will use the mock provider"
        )

    return problems


settings = Settings()
