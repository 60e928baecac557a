"""Exponential backoff retry that understands Gemini error categories."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import NoReturn, TypeVar

from .config import get_config
from .credentials import get_credentials
from .errors import (
    ErrorCategory,
    GenerationCancelled,
    GenerationError,
    classify_error,
    describe,
    is_retryable,
    requires_reselection,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryState:
    """Bookkeeping for one ``with_retry`` call."""

    attempt: int = 0
    last_error: Exception | None = None
    last_category: ErrorCategory | None = None
    delay: float = 0.0
    malformed_retries: int = 0


def backoff_delay(
    attempt: int,
    *,
    base: float,
    max_delay: float,
    jitter: float = 0.0,
) -> float:
    """Delay before the retry that follows attempt index *attempt*.

    ``base * 2**attempt`` plus uniform jitter in ``[0, jitter]``, capped at
    ``max_delay``.
    """
    spread = random.uniform(0.0, jitter) if jitter > 0 else 0.0
    return min(base * (2 ** attempt) + spread, max_delay)


async def wait_or_cancel(delay: float, cancel_event: asyncio.Event | None = None) -> None:
    """Sleep for *delay* seconds, raising GenerationCancelled if *cancel_event* fires."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    if cancel_event.is_set():
        raise GenerationCancelled("cancelled before wait")
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except TimeoutError:
        return
    raise GenerationCancelled("cancelled while waiting")


def _should_retry(state: RetryState, category: ErrorCategory, max_malformed: int) -> bool:
    if is_retryable(category):
        return True
    return category == ErrorCategory.MALFORMED_RESPONSE and state.malformed_retries < max_malformed


async def with_retry(
    coro_factory: Callable[[], Awaitable[T]],
    *,
    max_attempts: int | None = None,
    attempt_timeout: float | None = None,
    cancel_event: asyncio.Event | None = None,
    label: str = "gemini call",
) -> T:
    """Execute an async callable, retrying quota and transient failures.

    Quota and transient errors back off exponentially and retry while attempts
    remain. A malformed response gets ``malformed_max_retries`` extra tries.
    Permission and credential errors never retry: the reselection hook runs
    once and the error surfaces immediately.

    Args:
        coro_factory: Zero-arg callable that returns a fresh awaitable each attempt.
        max_attempts: Override ``retry_max_attempts`` from config.
        attempt_timeout: Per-attempt timeout in seconds (0 disables).
        cancel_event: Set to abandon the call at the next wait point.
        label: Name used in log lines.

    Returns:
        The result of the first successful call.

    Raises:
        GenerationError: Classified, user-facing error on final failure.
        GenerationCancelled: If *cancel_event* was set.
    """
    cfg = get_config()
    max_attempts = max_attempts or cfg.retry_max_attempts
    timeout = cfg.attempt_timeout if attempt_timeout is None else attempt_timeout

    state = RetryState()
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled(f"{label} cancelled")
        try:
            if timeout:
                return await asyncio.wait_for(coro_factory(), timeout=timeout)
            return await coro_factory()
        except GenerationCancelled:
            raise
        except Exception as exc:
            category = classify_error(exc)
            state.last_error = exc
            state.last_category = category
            attempts = state.attempt + 1

            if requires_reselection(category):
                logger.warning("%s rejected credential (%s): %s", label, category.value, exc)
                try:
                    await get_credentials().open_select_key()
                except Exception:
                    logger.warning("%s credential reselection hook failed", label, exc_info=True)
                _raise_final(exc, category, attempts)

            if not _should_retry(state, category, cfg.malformed_max_retries) or attempts >= max_attempts:
                _raise_final(exc, category, attempts)

            if category == ErrorCategory.MALFORMED_RESPONSE:
                state.malformed_retries += 1
            state.delay = backoff_delay(
                state.attempt,
                base=cfg.retry_base_delay,
                max_delay=cfg.retry_max_delay,
                jitter=cfg.retry_jitter,
            )
            logger.warning(
                "%s retry %d/%d after %.1fs (%s): %s",
                label, attempts, max_attempts, state.delay, category.value, exc,
            )
            await wait_or_cancel(state.delay, cancel_event)
            state.attempt += 1


def _raise_final(exc: Exception, category: ErrorCategory, attempts: int) -> NoReturn:
    if isinstance(exc, GenerationError):
        exc.attempts = attempts
        raise exc
    raise GenerationError(category, describe(category), detail=str(exc), attempts=attempts) from exc
