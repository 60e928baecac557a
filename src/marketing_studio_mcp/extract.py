"""Pull the JSON object out of a model reply that may carry surrounding prose."""

from __future__ import annotations

import json
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MalformedResponseError

M = TypeVar("M", bound=BaseModel)


def extract_json_payload(text: str) -> str:
    """Return ``text`` from the first ``{`` to the last ``}`` inclusive.

    Models sometimes prepend "Here is your result:" or append a sign-off even
    in JSON mode. When no braces are present (or they are out of order) the
    input is returned unchanged and the parser decides.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end < start:
        return text
    return text[start : end + 1]


def parse_payload(text: str, schema: type[M]) -> M:
    """Extract and validate a model reply into *schema*.

    Raises:
        MalformedResponseError: If the payload is not valid JSON or misses
            required fields.
    """
    payload = extract_json_payload(text)
    try:
        return schema.model_validate_json(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        snippet = payload[:200]
        raise MalformedResponseError(
            f"{schema.__name__} could not be parsed from {snippet!r}: {exc}"
        ) from exc
