"""Gemini API credential lookup and the key-reselection hook.

The key is resolved on every call so a freshly selected credential takes
effect on the next attempt, even in the middle of a retry loop.
"""

from __future__ import annotations

import inspect
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .config import get_config

logger = logging.getLogger(__name__)

ReselectHook = Callable[[], Awaitable[None] | None]


@runtime_checkable
class CredentialProvider(Protocol):
    """Host-side credential capability."""

    def api_key(self) -> str: ...

    def has_selected_api_key(self) -> bool: ...

    async def open_select_key(self) -> None: ...


class EnvCredentialProvider:
    """Resolve the key from an explicit selection, ``GEMINI_API_KEY``, then the config file."""

    env_var = "GEMINI_API_KEY"

    def __init__(self) -> None:
        self._selected: str = ""
        self._hooks: list[ReselectHook] = []

    def api_key(self) -> str:
        cfg = get_config()
        return self._selected or os.getenv(self.env_var, "") or cfg.gemini_api_key

    def has_selected_api_key(self) -> bool:
        return bool(self.api_key())

    def select(self, key: str) -> None:
        """Use *key* for every subsequent call."""
        self._selected = key.strip()
        logger.info("Selected Gemini API key (…%s)", self._selected[-4:])

    def on_reselect(self, hook: ReselectHook) -> None:
        """Register a callback run when the current key is rejected."""
        self._hooks.append(hook)

    async def open_select_key(self) -> None:
        """Drop the rejected selection and ask the host for a different key."""
        self._selected = ""
        if not self._hooks:
            logger.warning(
                "Gemini rejected the current API key — set %s or call infra_credentials(api_key=...)",
                self.env_var,
            )
            return
        for hook in self._hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result


_provider: CredentialProvider | None = None


def get_credentials() -> CredentialProvider:
    """Return the process-wide credential provider."""
    global _provider
    if _provider is None:
        _provider = EnvCredentialProvider()
    return _provider


def set_credentials(provider: CredentialProvider | None) -> None:
    """Install a host-specific provider (``None`` restores the env default)."""
    global _provider
    _provider = provider
