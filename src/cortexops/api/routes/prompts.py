"""Prompt guard-rail and classification routes."""

from __future__ import annotations

from fastapi import APIRouter

from cortexops.analysis.quality.guardrails import (
    format_validation_error,
    technical_suggestions,
)
from cortexops.api.schemas import (
    APIResponse,
    PromptRequest,
    classification_payload,
)
from cortexops.core import classify_prompt, validate_prompt

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


@router.post("/validate")
async def validate(body: PromptRequest) -> APIResponse:
    """Guard-rail verdict for a prompt.

    A rejected prompt is still a successful call; the verdict says
    why it was rejected.
    """
    verdict = validate_prompt(body.prompt)
    metadata: dict[str, object] = {
        "suggestions": technical_suggestions(body.prompt),
    }
    if not verdict.is_valid:
        metadata["formatted_error"] = format_validation_error(verdict)
    return APIResponse(
        success=True,
        data=verdict.model_dump(mode="json"),
        metadata=metadata,
    )


@router.post("/classify")
async def classify(body: PromptRequest) -> APIResponse:
    """Intent and entities of a prompt."""
    return APIResponse(
        success=True,
        data=classification_payload(classify_prompt(body.prompt)),
    )
