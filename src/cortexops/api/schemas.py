"""Request/response schemas for the HTTP API."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from pydantic import BaseModel, Field

from cortexops.constants import Environment
from cortexops.core import DeploymentClassification, PromptClassification


class APIResponse(BaseModel):
    """Standard response envelope for all API endpoints."""

    success: bool
    data: Any | None = None
    error: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class PromptRequest(BaseModel):
    """Request body for the /api/prompts endpoints."""

    prompt: str = Field(max_length=10_000)


class DeploymentRequest(BaseModel):
    """Request body for POST /api/deployment/classify."""

    prompt: str = Field(max_length=10_000)
    service_count: int | None = Field(default=None, ge=0)


class DocumentRequest(BaseModel):
    """Request body for POST /api/documents/validate."""

    content: str


class FixRequest(BaseModel):
    """Request body for POST /api/documents/fix.

    Without ``diagnostics`` the document is validated first and the
    resulting diagnostics drive the fixes.
    """

    content: str
    diagnostics: list[str] | None = None
    until_stable: bool = False
    max_passes: int = Field(default=3, ge=1, le=10)


class GenerateRequest(BaseModel):
    """Request body for POST /api/generate."""

    prompt: str = Field(min_length=1, max_length=10_000)
    environment: Environment | None = None


def classification_payload(result: PromptClassification) -> dict[str, Any]:
    return {
        "intent": asdict(result.intent),
        "entities": [asdict(e) for e in result.entities],
    }


def deployment_payload(result: DeploymentClassification) -> dict[str, Any]:
    return {
        "context": result.context.model_dump(mode="json"),
        "complexity": result.complexity.model_dump(mode="json"),
    }
