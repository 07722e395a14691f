"""Pydantic models for prompt guard-rail output."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cortexops.constants import PromptCategory


class ValidationVerdict(BaseModel):
    """Whether a prompt is eligible for generation.

    ``category`` is ``empty`` exactly when the input was blank.
    ``is_valid`` holds only for ``technical`` and the high-confidence
    ``ambiguous`` branch.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool
    category: PromptCategory
    confidence: int = Field(ge=0, le=100)
    detected_terms: list[str] = Field(
        default_factory=lambda: list[str]()
    )
    suggestions: list[str] = Field(
        default_factory=lambda: list[str]()
    )
    error_message: str | None = None
