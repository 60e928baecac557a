"""Bounded polling for long-running Veo operations."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from .errors import ErrorCategory, GenerationCancelled, GenerationError
from .retry import wait_or_cancel, with_retry

logger = logging.getLogger(__name__)

Op = TypeVar("Op")


class PollStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


@dataclass
class PollState:
    status: PollStatus = PollStatus.PENDING
    polls: int = 0


def _operation_error(operation: Any) -> str:
    error = getattr(operation, "error", None)
    if not error:
        return ""
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


async def poll_operation(
    operation: Op,
    refresh: Callable[[Op], Awaitable[Op]],
    *,
    interval: float,
    max_polls: int,
    cancel_event: asyncio.Event | None = None,
    state: PollState | None = None,
    label: str = "operation",
) -> Op:
    """Refresh *operation* every *interval* seconds until it reports ``done``.

    Each refresh goes through ``with_retry`` so a transient blip while polling
    does not lose a render that is already paid for.

    Raises:
        GenerationError: If the operation finished with an error (UNKNOWN) or
            is still running after *max_polls* refreshes (TRANSIENT).
        GenerationCancelled: If *cancel_event* fires during a wait.
    """
    state = state or PollState()
    while True:
        if getattr(operation, "done", False):
            message = _operation_error(operation)
            if message:
                state.status = PollStatus.FAILED
                raise GenerationError(
                    ErrorCategory.UNKNOWN,
                    "Video generation failed on the server",
                    detail=message,
                    attempts=state.polls,
                )
            state.status = PollStatus.DONE
            return operation

        if state.polls >= max_polls:
            state.status = PollStatus.TIMED_OUT
            raise GenerationError(
                ErrorCategory.TRANSIENT,
                f"Video generation did not finish after {state.polls} checks — try again later",
                attempts=state.polls,
            )

        try:
            await wait_or_cancel(interval, cancel_event)
        except GenerationCancelled:
            state.status = PollStatus.CANCELLED
            raise
        operation = await with_retry(
            functools.partial(refresh, operation),
            cancel_event=cancel_event,
            label=f"poll {label}",
        )
        state.polls += 1
        logger.info("Polled %s (%d/%d)", label, state.polls, max_polls)
