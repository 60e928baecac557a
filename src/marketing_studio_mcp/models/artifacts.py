"""Generated artifact models — output schemas for Gemini structured generation.

Each text model doubles as the ``response_json_schema`` sent to Gemini, so
field descriptions are written for the model. Every required string is
non-empty: a reply missing a field fails validation and counts as a
malformed response.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

NonEmpty = Annotated[str, Field(min_length=1)]


class _Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)


class SalesScript(_Artifact):
    """Persuasive sales structure for a product."""

    kind: Literal["sales_script"] = "sales_script"
    headline: NonEmpty = Field(description="Un titular impactante que capte la atención inmediatamente.")
    body: NonEmpty = Field(description="El cuerpo del mensaje de ventas estructurado profesionalmente.")
    cta: NonEmpty = Field(description="Una llamada a la acción poderosa y clara.")


class ObjectionResponse(_Artifact):
    """Script for answering a customer objection."""

    kind: Literal["objection_response"] = "objection_response"
    rebuttal: NonEmpty = Field(description="Respuesta exacta para decirle al cliente.")
    psychology: NonEmpty = Field(description="Por qué funciona esta respuesta a nivel psicológico.")
    closing_tip: NonEmpty = Field(description="Consejo concreto para cerrar la venta después de responder.")


class VideoScene(_Artifact):
    visual: NonEmpty = Field(description="Lo que se ve en pantalla.")
    audio: NonEmpty = Field(description="Locución o sonido de la escena.")
    duration: NonEmpty = Field(description="Duración aproximada, por ejemplo '3s'.")


class VideoScript(_Artifact):
    """Short-form video ad script."""

    kind: Literal["video_script"] = "video_script"
    hook: NonEmpty = Field(description="Gancho de los primeros 3 segundos.")
    scenes: list[VideoScene] = Field(min_length=1, description="Escenas en orden de aparición.")
    cta: NonEmpty = Field(description="Llamada a la acción final.")


class PostCopy(_Artifact):
    """Social post text generated alongside a campaign image."""

    post_text: NonEmpty = Field(description="Texto del post para redes sociales, con hashtags.")


class MarketingPack(_Artifact):
    """Campaign image plus ready-to-publish post text."""

    kind: Literal["marketing_pack"] = "marketing_pack"
    image_url: NonEmpty
    post_text: NonEmpty
    variant: str = ""


class MediaAsset(_Artifact):
    """A generated image (data URL) or video (local file URL)."""

    kind: Literal["media"] = "media"
    url: NonEmpty
    mime_type: NonEmpty
    variant: str = ""


GeneratedArtifact = Annotated[
    Union[SalesScript, ObjectionResponse, VideoScript, MarketingPack, MediaAsset],
    Field(discriminator="kind"),
]


def response_schema(model: type[BaseModel]) -> dict:
    """JSON schema to send to Gemini — the ``kind`` tag is filled in locally."""
    schema = model.model_json_schema()
    schema.get("properties", {}).pop("kind", None)
    return schema
