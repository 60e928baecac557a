"""Main FastMCP server — mounts all sub-servers."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .client import GeminiClient
from .tools.copywriting import copy_server
from .tools.infra import infra_server
from .tools.media import media_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — enables tracing and tears down shared Gemini clients."""
    tracing.setup()
    yield {}
    tracing.shutdown()
    closed = await GeminiClient.close_all()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "marketing-studio",
    instructions=(
        "Marketing content studio powered by Gemini and Veo — sales scripts, "
        "objection handling, video-ad scripts, campaign images, marketing packs "
        "and rendered video ads. Copy is written in Spanish."
    ),
    lifespan=_lifespan,
)

app.mount(copy_server)
app.mount(media_server)
app.mount(infra_server)


def main() -> None:
    """Entry-point for ``marketing-studio-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
