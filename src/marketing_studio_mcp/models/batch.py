"""Batch output models — what the variant tools return.

BatchOutput aggregates the successes of one variant batch. Failed variants
are reported by label and category; they never replace or reorder the
successful items.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .artifacts import GeneratedArtifact


class VariantFailureItem(BaseModel):
    """One variant that could not be generated."""

    variant: str
    category: str
    error: str


class BatchOutput(BaseModel):
    """Output schema for image_variants and marketing_pack."""

    total: int
    successful: int
    failed: int
    mode: str = "sequential"
    items: list[GeneratedArtifact] = Field(default_factory=list)
    failures: list[VariantFailureItem] = Field(default_factory=list)
