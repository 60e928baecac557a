"""Image, marketing-pack and video-ad tools — 4 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import Context, FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..batch import BatchResult, ProgressCallback
from ..config import get_config
from ..errors import make_tool_error
from ..generation import (
    generate_image,
    generate_image_variants,
    generate_marketing_packs,
    generate_video_ad,
)
from ..models.batch import BatchOutput, VariantFailureItem
from ..tracing import trace
from ..types import AspectRatio, BatchMode, ImagePrompt, ProductName, VideoAspectRatio, VideoResolution

logger = logging.getLogger(__name__)
media_server = FastMCP("media")


def _progress(ctx: Context | None, label: str) -> ProgressCallback | None:
    """Forward batch progress as MCP progress notifications ("variant 3 of 5")."""
    if ctx is None:
        return None

    async def _report(completed: int, total: int) -> None:
        await ctx.report_progress(progress=completed, total=total, message=f"{label} {completed} of {total}")

    return _report


def _batch_output(result: BatchResult, mode: str) -> dict:
    return BatchOutput(
        total=result.attempted,
        successful=result.succeeded,
        failed=result.failed,
        mode=mode,
        items=result.items,
        failures=[
            VariantFailureItem(variant=f.variant.key, category=f.category.value, error=f.message)
            for f in result.failures
        ],
    ).model_dump(mode="json")


@media_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="image_generate", span_type="TOOL")
async def image_generate(
    prompt: ImagePrompt,
    aspect_ratio: AspectRatio = "1:1",
) -> dict:
    """Generate a single advertising image.

    Returns:
        Dict with url (base64 data URL) and mime_type, or a tool error.
    """
    try:
        asset = await generate_image(prompt, aspect_ratio=aspect_ratio)
        return asset.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)


@media_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="image_variants", span_type="TOOL")
async def image_variants(
    prompt: ImagePrompt,
    aspect_ratio: AspectRatio = "1:1",
    mode: Annotated[BatchMode | None, Field(
        description="'sequential' (paced, default) or 'concurrent' dispatch of the 5 angles",
    )] = None,
    ctx: Context | None = None,
) -> dict:
    """Generate five campaign images, one per angle: corporate, dynamic, minimalist, tech, human.

    Angles that fail are skipped; the result reports how many of the five
    succeeded. Only a batch where every angle fails returns an error.

    Returns:
        BatchOutput dict (total, successful, failed, items, failures) or a tool error.
    """
    resolved_mode = mode or get_config().batch_mode
    try:
        result = await generate_image_variants(
            prompt,
            aspect_ratio=aspect_ratio,
            mode=resolved_mode,
            on_progress=_progress(ctx, "Image"),
        )
        return _batch_output(result, resolved_mode)
    except Exception as exc:
        return make_tool_error(exc)


@media_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="marketing_pack", span_type="TOOL")
async def marketing_pack(
    topic: ImagePrompt,
    mode: Annotated[BatchMode | None, Field(
        description="'sequential' (paced, default) or 'concurrent' dispatch of the pack styles",
    )] = None,
    ctx: Context | None = None,
) -> dict:
    """Generate ready-to-post packs (image + post text) in minimalist, bold and corporate styles.

    Returns:
        BatchOutput dict whose items carry image_url and post_text, or a tool error.
    """
    resolved_mode = mode or get_config().batch_mode
    try:
        result = await generate_marketing_packs(
            topic, mode=resolved_mode, on_progress=_progress(ctx, "Pack"),
        )
        return _batch_output(result, resolved_mode)
    except Exception as exc:
        return make_tool_error(exc)


@media_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=True))
@trace(name="video_ad", span_type="TOOL")
async def video_ad(
    product_name: ProductName,
    resolution: VideoResolution = "720p",
    aspect_ratio: VideoAspectRatio = "16:9",
) -> dict:
    """Render a short Veo video ad for a product and save it locally.

    Rendering usually takes one to several minutes; the operation is polled
    until done or until the configured poll budget runs out.

    Returns:
        Dict with url (file:// URI of the saved MP4) and mime_type, or a tool error.
    """
    try:
        asset = await generate_video_ad(
            product_name, resolution=resolution, aspect_ratio=aspect_ratio,
        )
        return asset.model_dump(mode="json")
    except Exception as exc:
        return make_tool_error(exc)
