"""Shared Gemini client pool — structured text, image and Veo video calls."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from google import genai
from google.genai import types
from pydantic import BaseModel

from .config import VALID_THINKING_LEVELS, get_config
from .credentials import get_credentials
from .errors import ErrorCategory, GenerationError, MalformedResponseError, category_for_status
from .extract import parse_payload
from .models.artifacts import response_schema
from .polling import PollState, poll_operation
from .retry import with_retry

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class InlineMedia:
    """Binary payload returned inline by Gemini or downloaded from Veo."""

    data: bytes
    mime_type: str


def _resolve_thinking_level(value: str) -> str:
    """Normalize and validate a thinking level string.

    Raises:
        ValueError: If the level is not in VALID_THINKING_LEVELS.
    """
    level = value.strip().lower()
    if level not in VALID_THINKING_LEVELS:
        allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
        raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
    return level


def _response_text(response: Any) -> str:
    """Join user-visible text parts, dropping thinking parts."""
    parts = response.candidates[0].content.parts if response.candidates else []
    text_parts = [p.text for p in parts or [] if p.text and not getattr(p, "thought", False)]
    return "\n".join(text_parts) if text_parts else (response.text or "")


def _find_inline_image(response: Any) -> InlineMedia | None:
    """Scan every part of every candidate — the image is not always first."""
    for candidate in response.candidates or []:
        content = candidate.content
        for part in (content.parts if content else None) or []:
            blob = part.inline_data
            if blob is not None and blob.data:
                return InlineMedia(data=blob.data, mime_type=blob.mime_type or "image/png")
    return None


def _video_uri(operation: Any) -> str:
    response = operation.response
    videos = response.generated_videos if response else None
    if not videos or not videos[0].video or not videos[0].video.uri:
        raise GenerationError(
            ErrorCategory.UNKNOWN,
            "Video generation returned no video — the prompt may have been filtered",
        )
    return videos[0].video.uri


class GeminiClient:
    """Process-wide Gemini client pool (one client per API key).

    The key is looked up through the credential provider inside every attempt,
    so a key reselected after a rejection is picked up on the next call.
    """

    _clients: dict[str, genai.Client] = {}

    @classmethod
    def get(cls, api_key: str | None = None) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        key = api_key or get_credentials().api_key()
        if not key:
            raise GenerationError(
                ErrorCategory.NOT_FOUND,
                "No Gemini API key selected — set GEMINI_API_KEY or call infra_credentials",
            )
        if key not in cls._clients:
            cls._clients[key] = genai.Client(api_key=key)
            logger.info("Created Gemini client (key …%s)", key[-4:])
        return cls._clients[key]

    @classmethod
    def _text_config(
        cls,
        *,
        thinking_level: str | None,
        temperature: float | None,
        system_instruction: str | None,
        schema: dict | None,
    ) -> types.GenerateContentConfig:
        cfg = get_config()
        config = types.GenerateContentConfig(
            thinking_config=types.ThinkingConfig(
                thinking_level=_resolve_thinking_level(thinking_level or cfg.default_thinking_level),
            ),
            temperature=temperature if temperature is not None else cfg.default_temperature,
        )
        if system_instruction:
            config.system_instruction = system_instruction
        if schema:
            config.response_mime_type = "application/json"
            config.response_json_schema = schema
        return config

    @classmethod
    async def _generate_once(cls, model: str, contents: Any, config: Any, **kwargs: Any) -> Any:
        client = cls.get()
        return await client.aio.models.generate_content(
            model=model, contents=contents, config=config, **kwargs,
        )

    @classmethod
    async def generate(
        cls,
        contents: Any,
        *,
        model: str | None = None,
        thinking_level: str | None = None,
        response_schema: dict | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
        max_attempts: int | None = None,
        cancel_event: asyncio.Event | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate text via Gemini with retry, returning user-visible text.

        Args:
            contents: Prompt contents (text or multimodal parts).
            model: Override model ID (defaults to config's text_model).
            thinking_level: Override thinking level.
            response_schema: JSON schema dict to constrain output format.
            temperature: Override temperature.
            system_instruction: System-level instruction.
            max_attempts: Override the retry budget (1 = single shot).
            cancel_event: Abandons the call at the next retry wait.
            **kwargs: Forwarded to ``generate_content``.
        """
        resolved_model = model or get_config().text_model
        config = cls._text_config(
            thinking_level=thinking_level,
            temperature=temperature,
            system_instruction=system_instruction,
            schema=response_schema,
        )

        async def _attempt() -> str:
            response = await cls._generate_once(resolved_model, contents, config, **kwargs)
            return _response_text(response)

        return await with_retry(
            _attempt,
            max_attempts=max_attempts,
            cancel_event=cancel_event,
            label=f"generate[{resolved_model}]",
        )

    @classmethod
    async def generate_structured(
        cls,
        contents: Any,
        *,
        schema: type[M],
        model: str | None = None,
        thinking_level: str | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
        cancel_event: asyncio.Event | None = None,
        **kwargs: Any,
    ) -> M:
        """Generate JSON constrained by *schema* and validate it.

        Extraction and validation run inside the retried attempt, so a reply
        that fails to parse is retried as a malformed response instead of
        surfacing a raw decode error.
        """
        resolved_model = model or get_config().text_model
        config = cls._text_config(
            thinking_level=thinking_level,
            temperature=temperature,
            system_instruction=system_instruction,
            schema=response_schema(schema),
        )

        async def _attempt() -> M:
            response = await cls._generate_once(resolved_model, contents, config, **kwargs)
            return parse_payload(_response_text(response), schema)

        return await with_retry(
            _attempt,
            cancel_event=cancel_event,
            label=f"{schema.__name__}[{resolved_model}]",
        )

    @classmethod
    async def generate_image(
        cls,
        prompt: str,
        *,
        aspect_ratio: str = "1:1",
        reference: InlineMedia | None = None,
        model: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> InlineMedia:
        """Generate one image; the response is scanned for the first inline image.

        Image models reject ``response_mime_type``/schemas and thinking config,
        so only the aspect ratio is configured.
        """
        resolved_model = model or get_config().image_model
        parts = [types.Part(text=prompt)]
        if reference is not None:
            parts.append(types.Part.from_bytes(data=reference.data, mime_type=reference.mime_type))
        contents = types.Content(role="user", parts=parts)
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )

        async def _attempt() -> InlineMedia:
            response = await cls._generate_once(resolved_model, contents, config)
            image = _find_inline_image(response)
            if image is None:
                raise MalformedResponseError("Image response contained no inline image data")
            return image

        return await with_retry(
            _attempt,
            cancel_event=cancel_event,
            label=f"image[{resolved_model}]",
        )

    @classmethod
    async def generate_video(
        cls,
        prompt: str,
        *,
        resolution: str = "720p",
        aspect_ratio: str = "16:9",
        number_of_videos: int = 1,
        model: str | None = None,
        cancel_event: asyncio.Event | None = None,
        poll_state: PollState | None = None,
    ) -> InlineMedia:
        """Start a Veo render, poll it to completion, and download the video.

        Returns:
            The downloaded MP4 bytes.
        """
        cfg = get_config()
        resolved_model = model or cfg.video_model
        config = types.GenerateVideosConfig(
            number_of_videos=number_of_videos,
            resolution=resolution,
            aspect_ratio=aspect_ratio,
        )

        async def _start() -> Any:
            return await cls.get().aio.models.generate_videos(
                model=resolved_model, prompt=prompt, config=config,
            )

        async def _refresh(operation: Any) -> Any:
            return await cls.get().aio.operations.get(operation)

        operation = await with_retry(
            _start, cancel_event=cancel_event, label=f"video[{resolved_model}]",
        )
        operation = await poll_operation(
            operation,
            _refresh,
            interval=cfg.video_poll_interval,
            max_polls=cfg.video_max_polls,
            cancel_event=cancel_event,
            state=poll_state,
            label=f"video[{resolved_model}]",
        )
        uri = _video_uri(operation)
        return await with_retry(
            lambda: cls._download(uri), cancel_event=cancel_event, label="video download",
        )

    @staticmethod
    async def _download(uri: str) -> InlineMedia:
        """Fetch a Veo file URI; the API key rides along as the ``key`` query param.

        A non-2xx reply becomes a GenerationError classified from the status
        code. Its message and detail never carry the key.
        """
        key = get_credentials().api_key()
        url = httpx.URL(uri).copy_add_param("key", key)
        async with httpx.AsyncClient(follow_redirects=True, timeout=120) as http:
            response = await http.get(url)
        if response.is_error:
            category = category_for_status(response.status_code)
            raise GenerationError(
                category,
                detail=f"Video download failed with HTTP {response.status_code} for {uri}",
            )
        mime = response.headers.get("content-type", "video/mp4").split(";")[0]
        return InlineMedia(data=response.content, mime_type=mime or "video/mp4")

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception:
                logger.debug("Async client close failed", exc_info=True)
            try:
                client.close()
            except Exception:
                logger.debug("Client close failed", exc_info=True)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count
