"""Best-effort spelling/grammar correction of short form inputs."""

from __future__ import annotations

import logging

from .client import GeminiClient
from .config import get_config
from .prompts.marketing import SANITIZE_SYSTEM, SANITIZE_TEMPLATE

logger = logging.getLogger(__name__)


async def correct_text(text: str, *, min_length: int | None = None) -> str:
    """Return *text* with spelling, grammar and tone fixed by the flash model.

    Inputs shorter than ``sanitize_min_length`` (after stripping) skip the
    round-trip. Any failure — quota, network, empty reply — yields the
    original text; correction never blocks the main generation.
    """
    cfg = get_config()
    threshold = cfg.sanitize_min_length if min_length is None else min_length
    if not cfg.sanitize_enabled or len(text.strip()) < threshold:
        return text

    try:
        corrected = await GeminiClient.generate(
            SANITIZE_TEMPLATE.format(text=text),
            model=cfg.flash_model,
            thinking_level="minimal",
            temperature=0.0,
            system_instruction=SANITIZE_SYSTEM,
            max_attempts=1,
        )
    except Exception as exc:
        logger.warning("Input correction skipped: %s", exc)
        return text

    corrected = corrected.strip().strip('"').strip()
    return corrected or text
