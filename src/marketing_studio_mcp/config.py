"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}
VALID_BATCH_MODES = {"sequential", "concurrent"}

MODEL_PRESETS: dict[str, dict[str, str]] = {
    "quality": {
        "text_model": "gemini-3-pro-preview",
        "flash_model": "gemini-3-flash-preview",
        "image_model": "gemini-3-pro-image-preview",
        "video_model": "veo-3.1-generate-preview",
        "label": "Best copy and media — Pro text, Pro image, full Veo 3.1 (lowest rate limits)",
    },
    "fast": {
        "text_model": "gemini-3-flash-preview",
        "flash_model": "gemini-3-flash-preview",
        "image_model": "gemini-2.5-flash-image",
        "video_model": "veo-3.1-fast-generate-preview",
        "label": "Default — Flash text, Flash image, Veo 3.1 fast",
    },
}


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    ``GEMINI_TRACING_ENABLED=false`` always wins; otherwise tracing follows
    whether ``MLFLOW_TRACKING_URI`` is set.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    text_model: str = Field(default="gemini-3-flash-preview")
    flash_model: str = Field(default="gemini-3-flash-preview")
    image_model: str = Field(default="gemini-2.5-flash-image")
    video_model: str = Field(default="veo-3.1-fast-generate-preview")
    default_thinking_level: str = Field(default="low")
    default_temperature: float = Field(default=1.0)
    retry_max_attempts: int = Field(default=4)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    retry_jitter: float = Field(default=1.0)
    malformed_max_retries: int = Field(default=1)
    attempt_timeout: float = Field(default=120.0)
    batch_mode: str = Field(default="sequential")
    batch_pause_seconds: float = Field(default=2.0)
    batch_concurrency: int = Field(default=3)
    sanitize_enabled: bool = Field(default=True)
    sanitize_min_length: int = Field(default=3)
    video_poll_interval: float = Field(default=10.0)
    video_max_polls: int = Field(default=60)
    output_dir: str = Field(default="")
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="marketing-studio-mcp")

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("batch_mode")
    @classmethod
    def validate_batch_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in VALID_BATCH_MODES:
            allowed = ", ".join(sorted(VALID_BATCH_MODES))
            raise ValueError(f"Invalid batch mode '{value}'. Allowed: {allowed}")
        return mode

    @field_validator("retry_max_attempts", "batch_concurrency", "video_max_polls")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("malformed_max_retries", "sanitize_min_length")
    @classmethod
    def validate_non_negative_ints(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Configuration values must be >= 0")
        return value

    @field_validator("retry_base_delay", "retry_max_delay", "video_poll_interval")
    @classmethod
    def validate_delays(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Delay must be > 0")
        return value

    @field_validator("retry_jitter", "batch_pause_seconds", "attempt_timeout")
    @classmethod
    def validate_non_negative_floats(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Value must be >= 0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        output_default = str(Path.home() / ".cache" / "marketing-studio-mcp" / "media")
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            text_model=os.getenv("GEMINI_MODEL", "gemini-3-flash-preview"),
            flash_model=os.getenv("GEMINI_FLASH_MODEL", "gemini-3-flash-preview"),
            image_model=os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image"),
            video_model=os.getenv("GEMINI_VIDEO_MODEL", "veo-3.1-fast-generate-preview"),
            default_thinking_level=os.getenv("GEMINI_THINKING_LEVEL", "low"),
            default_temperature=float(os.getenv("GEMINI_TEMPERATURE", "1.0")),
            retry_max_attempts=int(os.getenv("GEMINI_RETRY_MAX_ATTEMPTS", "4")),
            retry_base_delay=float(os.getenv("GEMINI_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("GEMINI_RETRY_MAX_DELAY", "60.0")),
            retry_jitter=float(os.getenv("GEMINI_RETRY_JITTER", "1.0")),
            malformed_max_retries=int(os.getenv("GEMINI_MALFORMED_MAX_RETRIES", "1")),
            attempt_timeout=float(os.getenv("GEMINI_ATTEMPT_TIMEOUT", "120.0")),
            batch_mode=os.getenv("MARKETING_BATCH_MODE", "sequential"),
            batch_pause_seconds=float(os.getenv("MARKETING_BATCH_PAUSE", "2.0")),
            batch_concurrency=int(os.getenv("MARKETING_BATCH_CONCURRENCY", "3")),
            sanitize_enabled=_env_flag("MARKETING_SANITIZE", "true"),
            sanitize_min_length=int(os.getenv("MARKETING_SANITIZE_MIN_LENGTH", "3")),
            video_poll_interval=float(os.getenv("MARKETING_VIDEO_POLL_INTERVAL", "10.0")),
            video_max_polls=int(os.getenv("MARKETING_VIDEO_MAX_POLLS", "60")),
            output_dir=os.getenv("MARKETING_OUTPUT_DIR", output_default),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GEMINI_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "marketing-studio-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/marketing-studio-mcp/.env`` before reading env vars.
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
    """Patch the live config (used by the ``infra_configure`` tool)."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
