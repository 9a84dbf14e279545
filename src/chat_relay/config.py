"""Configuration for the chat relay using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from loguru import logger
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent.parent  # src/chat_relay/ → project root


class Settings(BaseSettings):
    """All relay settings, loaded from environment variables and .env file.

    Built once at process start and handed to the services that need it.
    """

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # OpenAI chat completion
    # ------------------------------------------------------------------
    openai_key: str = ""
    openai_model: str = Field(
        default="gpt-3.5-turbo",
        validation_alias=AliasChoices("MODEL", "OPENAI_MODEL", "openai_model"),
    )
    openai_base_url: str | None = None
    openai_timeout: float | None = None
    temperature: float = 1.0

    # ------------------------------------------------------------------
    # Conversation window
    # ------------------------------------------------------------------
    max_messages_per_chat: int = Field(default=40, gt=0)

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------
    chat_db_path: Path = _PROJECT_ROOT / "database" / "chat_relay.sqlite"

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False

    # ------------------------------------------------------------------
    # Observability: "off" (default), "otel" or "logfire"
    # ------------------------------------------------------------------
    observability: str = "off"
    otel_service_name: str = "chat-relay"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318"
    otel_console_exporter: bool = False

    def validate_runtime(self) -> None:
        """Check runtime prerequisites.

        Call this at application startup (not at import time) so that
        tests can override settings before validation runs.  A missing key
        is only a warning: the upstream 401 is reported to callers as an
        invalid-credential error.
        """
        if not self.openai_key:
            logger.warning("OPENAI_KEY not set; completion requests will be rejected upstream")
        self.chat_db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
