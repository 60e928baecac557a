"""Marketing generation operations shared by the MCP tools.

Every operation follows the same pipeline: sanitize free text, build the
prompt, make a retry-wrapped Gemini call, and validate the reply into a
frozen artifact model. The variant operations fan out through ``run_batch``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import uuid
from collections.abc import Sequence
from pathlib import Path

from .batch import BatchResult, ProgressCallback, run_batch
from .client import GeminiClient, InlineMedia
from .config import get_config
from .models.artifacts import (
    MarketingPack,
    MediaAsset,
    ObjectionResponse,
    PostCopy,
    SalesScript,
    VideoScript,
)
from .models.requests import SalesScriptRequest
from .polling import PollState
from .prompts.marketing import (
    COPYWRITER_SYSTEM,
    IMAGE_AD,
    OBJECTION,
    POST_COPY,
    SALES_SCRIPT,
    TONE_LABELS,
    VIDEO_AD,
    VIDEO_SCRIPT,
)
from .sanitizer import correct_text
from .variants import IMAGE_VARIANTS, PACK_VARIANTS, Variant, apply_variant

logger = logging.getLogger(__name__)

_VIDEO_EXTENSIONS = {"video/mp4": ".mp4", "video/webm": ".webm", "video/quicktime": ".mov"}


def _data_url(media: InlineMedia) -> str:
    return f"data:{media.mime_type};base64,{base64.b64encode(media.data).decode('ascii')}"


def build_sales_prompt(request: SalesScriptRequest) -> str:
    """Render the sales-script prompt for *request*."""
    return SALES_SCRIPT.format(
        product_name=request.product_name,
        target_audience=request.target_audience,
        key_benefits=", ".join(request.key_benefits),
        tone=TONE_LABELS[request.tone],
        context=f"Contexto adicional: {request.context}\n" if request.context else "",
    )


async def generate_sales_script(
    request: SalesScriptRequest,
    *,
    cancel_event: asyncio.Event | None = None,
) -> SalesScript:
    """Headline, body and CTA for a product."""
    product_name = await correct_text(request.product_name)
    if product_name != request.product_name:
        request = request.model_copy(update={"product_name": product_name})
    return await GeminiClient.generate_structured(
        build_sales_prompt(request),
        schema=SalesScript,
        system_instruction=COPYWRITER_SYSTEM,
        cancel_event=cancel_event,
    )


async def handle_objection(
    objection: str,
    context: str = "Producto General",
    *,
    cancel_event: asyncio.Event | None = None,
) -> ObjectionResponse:
    """Rebuttal, psychology and closing tip for a customer objection."""
    objection = await correct_text(objection)
    return await GeminiClient.generate_structured(
        OBJECTION.format(objection=objection, context=context or "Producto General"),
        schema=ObjectionResponse,
        system_instruction=COPYWRITER_SYSTEM,
        cancel_event=cancel_event,
    )


async def generate_video_script(
    product: str,
    goal: str = "Ventas Directas",
    *,
    cancel_event: asyncio.Event | None = None,
) -> VideoScript:
    product = await correct_text(product)
    return await GeminiClient.generate_structured(
        VIDEO_SCRIPT.format(product=product, goal=goal or "Ventas Directas"),
        schema=VideoScript,
        system_instruction=COPYWRITER_SYSTEM,
        cancel_event=cancel_event,
    )


async def generate_image(
    prompt: str,
    *,
    aspect_ratio: str = "1:1",
    reference: InlineMedia | None = None,
    variant: Variant | None = None,
    cancel_event: asyncio.Event | None = None,
) -> MediaAsset:
    """One advertising image as a ``data:`` URL."""
    if variant is not None:
        prompt = apply_variant(prompt, variant)
    media = await GeminiClient.generate_image(
        IMAGE_AD.format(prompt=prompt),
        aspect_ratio=aspect_ratio,
        reference=reference,
        cancel_event=cancel_event,
    )
    return MediaAsset(
        url=_data_url(media),
        mime_type=media.mime_type,
        variant=variant.key if variant else "",
    )


async def generate_image_variants(
    prompt: str,
    *,
    variants: Sequence[Variant] = IMAGE_VARIANTS,
    aspect_ratio: str = "1:1",
    mode: str | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BatchResult[MediaAsset]:
    """One image per style angle; failed angles are dropped.

    The prompt is corrected once up front since every variant shares it.
    """
    prompt = await correct_text(prompt)

    async def _one(variant: Variant) -> MediaAsset:
        return await generate_image(
            prompt, aspect_ratio=aspect_ratio, variant=variant, cancel_event=cancel_event,
        )

    return await run_batch(
        _one, variants, mode=mode, on_progress=on_progress, cancel_event=cancel_event,
    )


async def generate_marketing_pack(
    topic: str,
    *,
    variant: Variant | None = None,
    cancel_event: asyncio.Event | None = None,
) -> MarketingPack:
    """Campaign image plus matching post text.

    The image and the post copy are independent calls and run concurrently;
    if either fails, the other is cancelled and the pack fails.
    """
    style = variant.directive if variant else "Marketing digital moderno"
    tasks = [
        asyncio.ensure_future(generate_image(topic, variant=variant, cancel_event=cancel_event)),
        asyncio.ensure_future(GeminiClient.generate_structured(
            POST_COPY.format(topic=topic, style=style),
            schema=PostCopy,
            system_instruction=COPYWRITER_SYSTEM,
            cancel_event=cancel_event,
        )),
    ]
    try:
        image, copy = await asyncio.gather(*tasks)
    except BaseException:
        # gather() leaves the other half running; it would keep retrying against quota.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return MarketingPack(
        image_url=image.url,
        post_text=copy.post_text,
        variant=variant.key if variant else "",
    )


async def generate_marketing_packs(
    topic: str,
    *,
    variants: Sequence[Variant] = PACK_VARIANTS,
    mode: str | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> BatchResult[MarketingPack]:
    topic = await correct_text(topic)

    async def _one(variant: Variant) -> MarketingPack:
        return await generate_marketing_pack(topic, variant=variant, cancel_event=cancel_event)

    return await run_batch(
        _one, variants, mode=mode, on_progress=on_progress, cancel_event=cancel_event,
    )


def _save_media(media: InlineMedia, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    suffix = _VIDEO_EXTENSIONS.get(media.mime_type, ".mp4")
    path = output_dir / f"video-ad-{uuid.uuid4().hex[:12]}{suffix}"
    path.write_bytes(media.data)
    return path


async def generate_video_ad(
    product_name: str,
    *,
    resolution: str = "720p",
    aspect_ratio: str = "16:9",
    cancel_event: asyncio.Event | None = None,
    poll_state: PollState | None = None,
) -> MediaAsset:
    """Render a Veo ad and store it locally; the asset URL is a ``file://`` URI."""
    product_name = await correct_text(product_name)
    media = await GeminiClient.generate_video(
        VIDEO_AD.format(product_name=product_name),
        resolution=resolution,
        aspect_ratio=aspect_ratio,
        cancel_event=cancel_event,
        poll_state=poll_state,
    )
    path = _save_media(media, Path(get_config().output_dir).expanduser())
    logger.info("Saved video ad (%d bytes) to %s", len(media.data), path)
    return MediaAsset(url=path.resolve().as_uri(), mime_type=media.mime_type)
