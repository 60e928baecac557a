"""Structured error handling — categories, classification, and tool error model."""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError


class ErrorCategory(str, Enum):
    """Actionable categories for failures of the Gemini / Veo backend."""

    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    TRANSIENT = "TRANSIENT"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    INVALID_INPUT = "INVALID_INPUT"
    CANCELLED = "CANCELLED"
    UNKNOWN = "UNKNOWN"


_DESCRIPTIONS: dict[ErrorCategory, str] = {
    ErrorCategory.QUOTA_EXCEEDED: "Gemini rate limit reached — wait a minute and try again",
    ErrorCategory.PERMISSION_DENIED: (
        "The selected API key is not allowed to use this model — check billing or pick another key"
    ),
    ErrorCategory.NOT_FOUND: "API key invalid or model not found — select a valid Gemini API key",
    ErrorCategory.TRANSIENT: "Gemini is temporarily unavailable — check your connection and try again",
    ErrorCategory.MALFORMED_RESPONSE: "The model returned an unexpected format — try again",
    ErrorCategory.INVALID_INPUT: "Invalid input — check the form fields",
    ErrorCategory.CANCELLED: "Generation was cancelled",
    ErrorCategory.UNKNOWN: "Generation failed — try again",
}

_RETRYABLE = {ErrorCategory.QUOTA_EXCEEDED, ErrorCategory.TRANSIENT}
_RESELECT = {ErrorCategory.PERMISSION_DENIED, ErrorCategory.NOT_FOUND}

_TRANSIENT_CODES = {408, 500, 502, 503, 504}
_STATUS_CATEGORIES: dict[str, ErrorCategory] = {
    "RESOURCE_EXHAUSTED": ErrorCategory.QUOTA_EXCEEDED,
    "PERMISSION_DENIED": ErrorCategory.PERMISSION_DENIED,
    "UNAUTHENTICATED": ErrorCategory.NOT_FOUND,
    "NOT_FOUND": ErrorCategory.NOT_FOUND,
    "UNAVAILABLE": ErrorCategory.TRANSIENT,
    "INTERNAL": ErrorCategory.TRANSIENT,
    "DEADLINE_EXCEEDED": ErrorCategory.TRANSIENT,
}


class GenerationError(Exception):
    """Failure of a generation call, tagged with a machine-readable category."""

    def __init__(
        self,
        category: ErrorCategory,
        message: str | None = None,
        *,
        detail: str = "",
        attempts: int = 0,
    ) -> None:
        self.category = category
        self.message = message or describe(category)
        self.detail = detail
        self.attempts = attempts
        super().__init__(self.message)


class MalformedResponseError(GenerationError):
    """Model output could not be parsed into the expected shape."""

    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCategory.MALFORMED_RESPONSE, detail=detail)


class BatchGenerationError(GenerationError):
    """Every variant of a batch failed."""

    def __init__(self, failures: list[Any], attempted: int) -> None:
        self.failures = failures
        self.attempted = attempted
        categories = {f.category for f in failures}
        category = categories.pop() if len(categories) == 1 else ErrorCategory.UNKNOWN
        message = f"None of the {attempted} variants could be generated: {describe(category)}"
        super().__init__(category, message, detail="; ".join(f.message for f in failures))


class GenerationCancelled(Exception):
    """The caller abandoned an in-flight generation."""


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False
    retry_after_seconds: int | None = None


def describe(category: ErrorCategory) -> str:
    """Short, user-facing sentence for *category*."""
    return _DESCRIPTIONS[category]


def is_retryable(category: ErrorCategory) -> bool:
    return category in _RETRYABLE


def requires_reselection(category: ErrorCategory) -> bool:
    """True when the configured credential cannot proceed at all."""
    return category in _RESELECT


def _iter_reasons(details: Any) -> Iterable[str]:
    """Yield ``reason`` strings from a Google API error payload."""
    if not isinstance(details, dict):
        return
    body = details.get("error", details)
    if not isinstance(body, dict):
        return
    for item in body.get("details") or []:
        if isinstance(item, dict) and item.get("reason"):
            yield str(item["reason"])


def _classify_code(code: Any, status: Any, details: Any = None) -> ErrorCategory | None:
    if any(r == "API_KEY_INVALID" for r in _iter_reasons(details)):
        return ErrorCategory.NOT_FOUND
    if isinstance(status, str) and status.upper() in _STATUS_CATEGORIES:
        return _STATUS_CATEGORIES[status.upper()]
    if not isinstance(code, int):
        return None
    if code == 429:
        return ErrorCategory.QUOTA_EXCEEDED
    if code == 403:
        return ErrorCategory.PERMISSION_DENIED
    if code in (401, 404):
        return ErrorCategory.NOT_FOUND
    if code in _TRANSIENT_CODES or code >= 500:
        return ErrorCategory.TRANSIENT
    if 400 <= code < 500:
        return ErrorCategory.UNKNOWN
    return None


def category_for_status(status_code: int) -> ErrorCategory:
    """Category for a bare HTTP status (e.g. a failed file download)."""
    return _classify_code(status_code, None) or ErrorCategory.UNKNOWN


def _classify_message(message: str) -> ErrorCategory:
    """Last-resort keyword match for errors without a machine-readable code."""
    s = message.lower()
    if "requested entity was not found" in s or "api key not valid" in s:
        return ErrorCategory.NOT_FOUND
    if "429" in s or "quota" in s or "resource_exhausted" in s or "rate limit" in s:
        return ErrorCategory.QUOTA_EXCEEDED
    if "permission" in s or "billing" in s or "403" in s:
        return ErrorCategory.PERMISSION_DENIED
    if "timeout" in s or "timed out" in s or "503" in s or "unavailable" in s:
        return ErrorCategory.TRANSIENT
    return ErrorCategory.UNKNOWN


def classify_error(error: BaseException) -> ErrorCategory:
    """Map an exception from the AI backend to an ErrorCategory.

    Structured signals win: our own ``GenerationError.category``, then the
    HTTP code / RPC status carried by ``google.genai.errors.APIError`` or
    ``httpx.HTTPStatusError``, then well-known exception types. Message
    matching only applies when none of those are present.
    """
    if isinstance(error, GenerationError):
        return error.category
    if isinstance(error, GenerationCancelled):
        return ErrorCategory.CANCELLED

    if isinstance(error, httpx.HTTPStatusError):
        category = _classify_code(error.response.status_code, None)
    else:
        category = _classify_code(
            getattr(error, "code", None),
            getattr(error, "status", None),
            getattr(error, "details", None),
        )
    if category is not None:
        return category

    if isinstance(error, (TimeoutError, ConnectionError, httpx.TransportError)):
        return ErrorCategory.TRANSIENT
    if isinstance(error, (json.JSONDecodeError, ValidationError)):
        return ErrorCategory.MALFORMED_RESPONSE
    return _classify_message(str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    if isinstance(error, ValueError) and not isinstance(error, (json.JSONDecodeError, ValidationError)):
        cat, message = ErrorCategory.INVALID_INPUT, str(error)
    else:
        cat = classify_error(error)
        message = error.message if isinstance(error, GenerationError) else describe(cat)
    return ToolError(
        error=message,
        category=cat.value,
        hint=describe(cat),
        retryable=is_retryable(cat) or cat == ErrorCategory.MALFORMED_RESPONSE,
        retry_after_seconds=60 if cat == ErrorCategory.QUOTA_EXCEEDED else None,
    ).model_dump(mode="json")
