"""Fixed style angles used to diversify a batch of identical requests."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Variant:
    """One stylistic angle: stable key, display label, and the prompt directive."""

    key: str
    label: str
    directive: str


IMAGE_VARIANTS: tuple[Variant, ...] = (
    Variant("corporate", "Corporativo", "Enfoque corporativo y serio"),
    Variant("dynamic", "Dinámico", "Enfoque dinámico y creativo"),
    Variant("minimalist", "Minimalista", "Enfoque minimalista y limpio"),
    Variant("tech", "Tecnológico", "Enfoque tecnológico y futurista"),
    Variant("human", "Humano", "Enfoque humano y emocional"),
)

PACK_VARIANTS: tuple[Variant, ...] = (
    Variant("minimalist", "Minimalista", "Estilo minimalista, mensaje breve y elegante"),
    Variant("bold", "Audaz", "Estilo audaz, colores intensos y mensaje directo"),
    Variant("corporate", "Corporativo", "Estilo corporativo, sobrio y orientado a confianza"),
)


def apply_variant(prompt: str, variant: Variant) -> str:
    """Merge *variant* into a base generation prompt."""
    return f"{prompt} - {variant.directive}"
