"""Variant batch orchestration — N independent generations, partial success allowed."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .config import get_config
from .errors import (
    BatchGenerationError,
    ErrorCategory,
    GenerationCancelled,
    classify_error,
)
from .retry import wait_or_cancel
from .variants import Variant

logger = logging.getLogger(__name__)

T = TypeVar("T")

ProgressCallback = Callable[[int, int], Awaitable[None] | None]


@dataclass
class VariantFailure:
    """A variant that failed; recorded, never raised on its own."""

    variant: Variant
    category: ErrorCategory
    message: str


@dataclass
class BatchResult(Generic[T]):
    """Successful items in submission order plus the failures that were dropped."""

    items: list[T]
    attempted: int
    failures: list[VariantFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.items)

    @property
    def failed(self) -> int:
        return len(self.failures)


async def _notify(on_progress: ProgressCallback | None, completed: int, total: int) -> None:
    if on_progress is None:
        return
    result = on_progress(completed, total)
    if inspect.isawaitable(result):
        await result


def _record_failure(variant: Variant, exc: Exception) -> VariantFailure:
    category = classify_error(exc)
    logger.warning("Variant %r failed (%s): %s", variant.key, category.value, exc)
    return VariantFailure(variant=variant, category=category, message=str(exc))


async def _run_sequential(
    factory: Callable[[Variant], Awaitable[T]],
    variants: Sequence[Variant],
    pause: float,
    on_progress: ProgressCallback | None,
    cancel_event: asyncio.Event | None,
) -> tuple[list[T | None], list[VariantFailure]]:
    outcomes: list[T | None] = []
    failures: list[VariantFailure] = []
    total = len(variants)
    for index, variant in enumerate(variants):
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelled("batch cancelled")
        if index and pause > 0:
            await wait_or_cancel(pause, cancel_event)
        try:
            outcomes.append(await factory(variant))
        except GenerationCancelled:
            raise
        except Exception as exc:
            outcomes.append(None)
            failures.append(_record_failure(variant, exc))
        await _notify(on_progress, index + 1, total)
    return outcomes, failures


async def _run_concurrent(
    factory: Callable[[Variant], Awaitable[T]],
    variants: Sequence[Variant],
    concurrency: int,
    on_progress: ProgressCallback | None,
    cancel_event: asyncio.Event | None,
) -> tuple[list[T | None], list[VariantFailure]]:
    semaphore = asyncio.Semaphore(concurrency)
    total = len(variants)
    completed = 0
    failures: dict[int, VariantFailure] = {}

    async def _process(index: int, variant: Variant) -> T | None:
        nonlocal completed
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                raise GenerationCancelled("batch cancelled")
            try:
                return await factory(variant)
            except GenerationCancelled:
                raise
            except Exception as exc:
                failures[index] = _record_failure(variant, exc)
                return None
            finally:
                completed += 1
                await _notify(on_progress, completed, total)

    tasks = [asyncio.ensure_future(_process(i, v)) for i, v in enumerate(variants)]
    try:
        outcomes = await asyncio.gather(*tasks)
    except GenerationCancelled:
        # gather() leaves siblings running; they would keep calling Gemini.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return list(outcomes), [failures[i] for i in sorted(failures)]


async def run_batch(
    factory: Callable[[Variant], Awaitable[T]],
    variants: Sequence[Variant],
    *,
    mode: str | None = None,
    pause: float | None = None,
    concurrency: int | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BatchResult[T]:
    """Run *factory* once per variant and keep whatever succeeds.

    Sequential mode waits ``pause`` seconds between variants so preview models
    with tight rate limits are not hit in bursts; concurrent mode dispatches
    everything under a semaphore. A failing variant is logged and skipped;
    ``on_progress(completed, total)`` fires after every variant either way.

    Args:
        factory: Produces one artifact for a variant (usually retry-wrapped).
        variants: The fixed angle set to expand the request into.
        mode: ``"sequential"`` or ``"concurrent"`` (default from config).
        pause: Seconds between sequential variants (default from config).
        concurrency: Max in-flight variants in concurrent mode.
        on_progress: Sync or async callback receiving (completed, total).
        cancel_event: Set to abandon the rest of the batch.

    Returns:
        BatchResult with successes in submission order.

    Raises:
        BatchGenerationError: If every variant failed.
        GenerationCancelled: If *cancel_event* was set.
    """
    if not variants:
        raise ValueError("At least one variant is required")

    cfg = get_config()
    mode = mode or cfg.batch_mode
    if mode == "concurrent":
        outcomes, failures = await _run_concurrent(
            factory, variants, concurrency or cfg.batch_concurrency, on_progress, cancel_event,
        )
    elif mode == "sequential":
        outcomes, failures = await _run_sequential(
            factory, variants,
            cfg.batch_pause_seconds if pause is None else pause,
            on_progress, cancel_event,
        )
    else:
        raise ValueError(f"Invalid batch mode '{mode}'. Allowed: concurrent, sequential")

    items = [o for o in outcomes if o is not None]
    if not items:
        raise BatchGenerationError(failures, attempted=len(variants))

    logger.info("Batch finished: %d/%d variants succeeded", len(items), len(variants))
    return BatchResult(items=items, attempted=len(variants), failures=failures)
