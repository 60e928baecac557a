"""Input models submitted by the generation forms."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..types import Tone


class SalesScriptRequest(BaseModel):
    """Parameters for a sales-script generation. Immutable once submitted."""

    model_config = ConfigDict(frozen=True)

    product_name: str = Field(min_length=1, max_length=200)
    target_audience: str = Field(min_length=1, max_length=500)
    key_benefits: list[str] = Field(min_length=1)
    tone: Tone = "professional"
    context: str = ""

    @field_validator("product_name", "target_audience")
    @classmethod
    def strip_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("key_benefits")
    @classmethod
    def drop_blank_benefits(cls, value: list[str]) -> list[str]:
        benefits = [b.strip() for b in value if b and b.strip()]
        if not benefits:
            raise ValueError("at least one key benefit is required")
        return benefits
