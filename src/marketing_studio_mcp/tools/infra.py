"""Infrastructure tools — runtime configuration and API key selection."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field, ValidationError

from ..client import GeminiClient
from ..config import MODEL_PRESETS, get_config, update_config
from ..credentials import EnvCredentialProvider, get_credentials
from ..errors import make_tool_error
from ..tracing import trace
from ..types import BatchMode, ModelPreset, ThinkingLevel

infra_server = FastMCP("infra")
_SENSITIVE_CONFIG_FIELDS = {"gemini_api_key"}


def _redacted_config() -> dict:
    """Return runtime config with secret-bearing fields removed."""
    return get_config().model_dump(exclude=_SENSITIVE_CONFIG_FIELDS)


def _active_preset() -> str | None:
    cfg = get_config()
    for name, preset in MODEL_PRESETS.items():
        if all(getattr(cfg, k) == v for k, v in preset.items() if k != "label"):
            return name
    return None


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_configure", span_type="TOOL")
async def infra_configure(
    preset: Annotated[ModelPreset | None, Field(
        description='Named model preset: "quality" (Pro models) or "fast" (Flash models, default)',
    )] = None,
    text_model: Annotated[str | None, Field(description="Gemini text model ID (overrides preset)")] = None,
    image_model: Annotated[str | None, Field(description="Gemini image model ID (overrides preset)")] = None,
    video_model: Annotated[str | None, Field(description="Veo model ID (overrides preset)")] = None,
    thinking_level: ThinkingLevel | None = None,
    temperature: Annotated[float | None, Field(ge=0.0, le=2.0, description="Sampling temperature")] = None,
    batch_mode: BatchMode | None = None,
    batch_pause_seconds: Annotated[float | None, Field(ge=0.0, le=60.0)] = None,
    retry_max_attempts: Annotated[int | None, Field(ge=1, le=10)] = None,
    sanitize_enabled: bool | None = None,
) -> dict:
    """Reconfigure the server at runtime — models, batch pacing, retries, input correction.

    Changes take effect immediately for all subsequent tool calls.

    Returns:
        Dict with current_config, active_preset, and available_presets.
    """
    overrides: dict = {}
    if preset:
        overrides.update({k: v for k, v in MODEL_PRESETS[preset].items() if k != "label"})
    explicit = {
        "text_model": text_model,
        "image_model": image_model,
        "video_model": video_model,
        "default_thinking_level": thinking_level,
        "default_temperature": temperature,
        "batch_mode": batch_mode,
        "batch_pause_seconds": batch_pause_seconds,
        "retry_max_attempts": retry_max_attempts,
        "sanitize_enabled": sanitize_enabled,
    }
    overrides.update({k: v for k, v in explicit.items() if v is not None})
    try:
        update_config(**overrides)
    except ValidationError as exc:
        return make_tool_error(ValueError(exc.errors()[0].get("msg", "invalid value")))

    return {
        "current_config": _redacted_config(),
        "active_preset": _active_preset(),
        "available_presets": {name: p["label"] for name, p in MODEL_PRESETS.items()},
    }


@infra_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="infra_credentials", span_type="TOOL")
async def infra_credentials(
    api_key: Annotated[str | None, Field(
        min_length=1, description="Gemini API key to use from now on (omit to just check status)",
    )] = None,
) -> dict:
    """Check whether a Gemini API key is selected, or select a new one.

    Returns:
        Dict with has_selected_api_key and the last 4 characters of the active key.
    """
    provider = get_credentials()
    if api_key:
        if not isinstance(provider, EnvCredentialProvider):
            return make_tool_error(ValueError("API key selection is managed by the host application"))
        provider.select(api_key)
        await GeminiClient.close_all()

    key = provider.api_key()
    return {
        "has_selected_api_key": provider.has_selected_api_key(),
        "key_suffix": key[-4:] if key else "",
    }
