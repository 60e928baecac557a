"""Shared type aliases and helpers for tool parameters."""

from __future__ import annotations

import json
from typing import Annotated, Literal

from pydantic import Field


def coerce_json_param(value: str | dict | list | None, expected_type: type) -> dict | list | None:
    """Parse MCP JSON-RPC string params back to dict/list.

    Some MCP hosts serialize list params (e.g. ``key_benefits``) as JSON
    strings, which Pydantic v2 rejects. Returns the parsed value when it has
    the expected type, otherwise the original value.
    """
    if not isinstance(value, str):
        return value
    try:
        parsed = json.loads(value)
        if isinstance(parsed, expected_type):
            return parsed
    except (json.JSONDecodeError, TypeError):
        pass
    return value

# ── Literal enums ────────────────────────────────────────────────────────────

ThinkingLevel = Literal["minimal", "low", "medium", "high"]
Tone = Literal["professional", "aggressive", "empathetic", "humorous"]
BatchMode = Literal["sequential", "concurrent"]
AspectRatio = Literal["1:1", "3:4", "4:3", "9:16", "16:9"]
VideoAspectRatio = Literal["16:9", "9:16"]
VideoResolution = Literal["720p", "1080p"]
ModelPreset = Literal["quality", "fast"]

# ── Annotated aliases ────────────────────────────────────────────────────────

ProductName = Annotated[str, Field(min_length=1, max_length=200, description="Product or service name")]
FreeText = Annotated[str, Field(min_length=1, max_length=2000, description="Free-text form input")]
ImagePrompt = Annotated[str, Field(
    min_length=3,
    max_length=2000,
    description="Campaign or visual description, e.g. 'Estrategias de marketing para inmobiliarias'",
)]
