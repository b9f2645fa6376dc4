"""
Application Configuration

Pydantic-based settings management using environment variables.
Supports nested configuration, validation, and caching.

Usage:
    from chatapp.config import get_settings

    settings = get_settings()
    print(settings.llm.default_model)
    print(settings.conversation.keep_recent_messages)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_MESSAGE = "You are a helpful AI assistant."


class LLMSettings(BaseSettings):
    """Completion provider configuration."""

    openrouter_api_key: str | None = Field(
        None,
        description="OpenRouter API key",
        min_length=20,
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL of the OpenAI-compatible completion endpoint",
    )
    default_model: str = Field(
        default="openai/gpt-3.5-turbo",
        description="Model identifier used when a request does not override it",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Default sampling temperature",
    )
    max_tokens: int = Field(
        default=2000,
        gt=0,
        le=16000,
        description="Maximum tokens per completion",
    )
    timeout: int = Field(
        default=30,
        gt=0,
        description="Request timeout in seconds",
    )
    app_referer: str = Field(
        default="http://localhost:8000",
        description="Sent as HTTP-Referer so OpenRouter can attribute traffic",
    )
    app_title: str = Field(
        default="Chatbot",
        description="Sent as X-Title so OpenRouter can attribute traffic",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("openrouter_api_key", mode="before")
    @classmethod
    def normalize_api_key(cls, v: str | None) -> str | None:
        """Treat empty strings as missing."""
        if v == "":
            return None
        return v

    @field_validator("openrouter_api_key")
    @classmethod
    def validate_api_key(cls, v: str | None) -> str | None:
        """Validate OpenRouter API key format."""
        if v and not v.startswith("sk-"):
            raise ValueError("OpenRouter API key must start with 'sk-'")
        return v

    @field_validator("openrouter_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ConversationSettings(BaseSettings):
    """Conversation policy: preamble, context window and input limits."""

    system_message: str = Field(
        default=DEFAULT_SYSTEM_MESSAGE,
        min_length=1,
        description="System preamble injected as the first outbound message",
    )
    max_conversation_length: int = Field(
        default=30,
        gt=0,
        description="Outbound history is truncated once it exceeds this many messages",
    )
    keep_recent_messages: int = Field(
        default=24,
        gt=0,
        description="Number of most recent messages kept after truncation",
    )
    max_message_length: int = Field(
        default=4000,
        gt=0,
        description="Maximum characters accepted in a single user message",
    )
    recent_sessions_limit: int = Field(
        default=10,
        gt=0,
        le=200,
        description="Number of saved sessions listed by default",
    )
    title_max_length: int = Field(
        default=30,
        gt=0,
        description="Characters of the first user message used as a session title",
    )

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_truncation_window(self) -> "ConversationSettings":
        """Ensure the keep-recent count fits inside the truncation threshold."""
        if self.keep_recent_messages > self.max_conversation_length:
            raise ValueError(
                f"keep_recent_messages ({self.keep_recent_messages}) must not exceed "
                f"max_conversation_length ({self.max_conversation_length})"
            )
        return self


class StorageSettings(BaseSettings):
    """Session store configuration."""

    path: Path = Field(
        default=Path("./chat_data/chat_history.json"),
        description="JSON file holding every saved session",
    )
    store_key: str = Field(
        default="chatHistory",
        min_length=1,
        description="Name of the single record that holds the session list",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("path")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        return v.expanduser().resolve()


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format",
    )
    date_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Log timestamp format",
    )
    file: Path | None = Field(
        default=None,
        description="Optional log file path (None = stdout only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    def configure(self) -> None:
        """Configure Python logging with these settings."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]

        if self.file:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(self.file))

        logging.basicConfig(
            level=getattr(logging, self.level),
            format=self.format,
            datefmt=self.date_format,
            handlers=handlers,
            force=True,  # Override any existing configuration
        )


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    Settings are nested by domain (llm, conversation, storage, logging).

    Environment Variables:
        ENVIRONMENT: Deployment environment (development, staging, production)
        APP_NAME: Application name for logging
        DEBUG: Enable debug mode
        API_HOST: API server host
        API_PORT: API server port
        CORS_ORIGINS: Comma-separated list of allowed browser origins
        LLM_*: Completion provider configuration (see LLMSettings)
        CHAT_*: Conversation policy (see ConversationSettings)
        STORAGE_*: Session store location (see StorageSettings)
        LOG_*: Logging configuration (see LoggingSettings)

    Example:
        >>> settings = get_settings()
        >>> settings.llm.default_model
        'openai/gpt-3.5-turbo'
        >>> settings.conversation.max_conversation_length
        30
    """

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    app_name: str = Field(
        default="Chatbot",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    api_host: str = Field(
        default="127.0.0.1",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        gt=0,
        le=65535,
        description="API server port",
    )
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated list of allowed browser origins",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def configure_logging(self) -> "Settings":
        """Configure logging when settings are loaded."""
        self.logging.configure()
        return self

    def model_post_init(self, __context) -> None:
        """Log configuration on initialization."""
        logger = logging.getLogger(__name__)
        logger.info(
            f"Settings loaded for {self.app_name} ({self.environment})",
            extra={
                "environment": self.environment,
                "debug": self.debug,
                "model": self.llm.default_model,
                "api_key_configured": bool(self.llm.openrouter_api_key),
                "store_path": str(self.storage.path),
            },
        )


_DOTENV_PATH = Path(__file__).resolve().parents[1] / ".env"


def _apply_dotenv_precedence() -> None:
    env_source = os.getenv("CHATAPP_ENV_SOURCE", "dotenv").lower()
    if env_source not in {"dotenv", "envfile", "file"}:
        return
    if _DOTENV_PATH.exists():
        load_dotenv(_DOTENV_PATH, override=True)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses functools.lru_cache to ensure settings are loaded only once.

    Returns:
        Settings: Cached settings instance
    """
    _apply_dotenv_precedence()
    return Settings()


def clear_settings_cache() -> None:
    """
    Clear the settings cache.

    Useful for testing when you need to reload settings with different
    environment variables.
    """
    get_settings.cache_clear()
