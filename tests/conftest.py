"""Shared test fixtures for marketing-studio-mcp."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.genai import types


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


def text_response(text: str) -> types.GenerateContentResponse:
    """A single-candidate Gemini response carrying *text*."""
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))],
    )


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing in all tests to avoid real tracking-server calls."""
    monkeypatch.setenv("GEMINI_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _disable_sanitizer(monkeypatch):
    """Input correction is an extra Gemini call; sanitizer tests re-enable it."""
    monkeypatch.setenv("MARKETING_SANITIZE", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/marketing-studio-mcp/.env."""
    monkeypatch.setattr(
        "marketing_studio_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def _isolate_output_dir(tmp_path, monkeypatch):
    """Rendered videos land in a per-test temp directory."""
    monkeypatch.setenv("MARKETING_OUTPUT_DIR", str(tmp_path / "media"))


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config singleton, credential provider and client pool between tests."""
    import marketing_studio_mcp.config as cfg_mod
    from marketing_studio_mcp.client import GeminiClient
    from marketing_studio_mcp.credentials import set_credentials

    cfg_mod._config = None
    set_credentials(None)
    GeminiClient._clients.clear()
    yield
    cfg_mod._config = None
    set_credentials(None)
    GeminiClient._clients.clear()


@pytest.fixture()
def no_sleep():
    """Make backoff waits and batch pauses instant."""
    with patch("marketing_studio_mcp.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture()
def mock_sdk():
    """Patch GeminiClient.get() with a fake SDK client whose aio calls are AsyncMocks."""
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.operations.get = AsyncMock()
    with patch("marketing_studio_mcp.client.GeminiClient.get", return_value=client) as mock_get:
        yield {"get": mock_get, "client": client}


@pytest.fixture()
def mock_gemini_client():
    """Patch the GeminiClient entry points used by the generation operations."""
    with (
        patch("marketing_studio_mcp.client.GeminiClient.get") as mock_get,
        patch(
            "marketing_studio_mcp.client.GeminiClient.generate", new_callable=AsyncMock
        ) as mock_gen,
        patch(
            "marketing_studio_mcp.client.GeminiClient.generate_structured",
            new_callable=AsyncMock,
        ) as mock_structured,
        patch(
            "marketing_studio_mcp.client.GeminiClient.generate_image",
            new_callable=AsyncMock,
        ) as mock_image,
        patch(
            "marketing_studio_mcp.client.GeminiClient.generate_video",
            new_callable=AsyncMock,
        ) as mock_video,
    ):
        client = MagicMock()
        mock_get.return_value = client
        yield {
            "get": mock_get,
            "generate": mock_gen,
            "generate_structured": mock_structured,
            "generate_image": mock_image,
            "generate_video": mock_video,
            "client": client,
        }
