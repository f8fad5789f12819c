"""Server configuration via environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

from .errors import ConfigurationError

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}

# YouTube caps commentThreads.list maxResults at 100.
MAX_PAGE_SIZE = 100


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    ``GEMINI_TRACING_ENABLED=false`` always wins; otherwise tracing is on
    whenever ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    youtube_api_key: str = Field(default="")
    default_model: str = Field(default="gemini-2.5-flash")
    default_thinking_level: str = Field(default="")
    default_temperature: float = Field(default=1.0)
    comment_page_size: int = Field(default=MAX_PAGE_SIZE)
    max_comments: int = Field(default=200)
    analysis_comment_limit: int = Field(default=100)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="comment-insight-mcp")

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level and level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("comment_page_size")
    @classmethod
    def validate_page_size(cls, value: int) -> int:
        if not 1 <= value <= MAX_PAGE_SIZE:
            raise ValueError(f"comment_page_size must be between 1 and {MAX_PAGE_SIZE}")
        return value

    @field_validator("max_comments", "analysis_comment_limit")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    def require_youtube_key(self) -> str:
        """Return the YouTube Data API key or raise ConfigurationError."""
        if not self.youtube_api_key:
            raise ConfigurationError("YOUTUBE_API_KEY environment variable not set.")
        return self.youtube_api_key

    def require_gemini_key(self) -> str:
        """Return the Gemini API key or raise ConfigurationError."""
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable not set.")
        return self.gemini_api_key

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            youtube_api_key=os.getenv("YOUTUBE_API_KEY", ""),
            default_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            default_thinking_level=os.getenv("GEMINI_THINKING_LEVEL", ""),
            default_temperature=float(os.getenv("GEMINI_TEMPERATURE", "1.0")),
            comment_page_size=int(os.getenv("COMMENT_PAGE_SIZE", str(MAX_PAGE_SIZE))),
            max_comments=int(os.getenv("COMMENT_MAX_COUNT", "200")),
            analysis_comment_limit=int(os.getenv("ANALYSIS_COMMENT_LIMIT", "100")),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GEMINI_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "comment-insight-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/comment-insight-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logging.getLogger(__name__).info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config; ``None`` values are ignored."""
    global _config
    data = get_config().model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
