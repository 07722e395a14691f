"""Deployment context and complexity routes."""

from __future__ import annotations

from fastapi import APIRouter

from cortexops.analysis.deployment.context import (
    expected_components,
    needs_role_based_structure,
)
from cortexops.api.schemas import (
    APIResponse,
    DeploymentRequest,
    deployment_payload,
)
from cortexops.core import classify_deployment

router = APIRouter(prefix="/api/deployment", tags=["deployment"])


@router.post("/classify")
async def classify(body: DeploymentRequest) -> APIResponse:
    result = classify_deployment(body.prompt, body.service_count)
    context = result.context.context
    return APIResponse(
        success=True,
        data=deployment_payload(result),
        metadata={
            "role_based": needs_role_based_structure(context),
            "expected_components": expected_components(context),
        },
    )
