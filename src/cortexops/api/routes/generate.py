"""End-to-end playbook generation route."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends

from cortexops.api.dependencies import (
    get_history,
    get_registry,
    get_request_logger,
    get_settings,
)
from cortexops.api.schemas import (
    APIResponse,
    GenerateRequest,
    classification_payload,
    deployment_payload,
)
from cortexops.config import Settings
from cortexops.generation.registry import TemplateRegistry
from cortexops.logger import RequestLogger
from cortexops.models.history import HistoryRecord
from cortexops.repositories.protocols import HistoryRepository
from cortexops.services.generation_service import run_generation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])


@router.post("/generate")
async def generate_playbook(
    body: GenerateRequest,
    settings: Settings = Depends(get_settings),
    history: HistoryRepository = Depends(get_history),
    registry: TemplateRegistry = Depends(get_registry),
    request_logger: RequestLogger | None = Depends(get_request_logger),
) -> APIResponse:
    """Run the generation pipeline for a prompt."""
    result = await asyncio.to_thread(
        run_generation,
        body.prompt,
        settings,
        environment=body.environment,
        registry=registry,
        request_logger=request_logger,
    )

    stages = [
        {
            "name": s.name,
            "outcome": s.outcome,
            "duration_ms": round(s.duration_ms, 2),
            "error": s.error,
        }
        for s in result.stages
    ]
    metadata = {
        "request_id": result.request_id,
        "duration_ms": round(result.total_duration_ms, 2),
        "stages": stages,
    }

    if result.content is None:
        data = (
            {"verdict": result.verdict.model_dump(mode="json")}
            if result.verdict is not None
            else None
        )
        return APIResponse(
            success=False,
            data=data,
            error=result.error or "Generation failed",
            metadata=metadata,
        )

    record = await history.append(
        HistoryRecord(
            prompt=result.prompt,
            content=result.content,
            template=result.playbook.template if result.playbook else None,
            context=(
                result.deployment.context.context
                if result.deployment
                else None
            ),
            tier=(
                result.deployment.complexity.tier
                if result.deployment
                else None
            ),
            valid=result.ok,
        )
    )
    metadata["history_id"] = record.id

    return APIResponse(
        success=True,
        data={
            "content": result.content,
            "template": record.template,
            "environment": result.environment,
            "valid": result.ok,
            "classification": (
                classification_payload(result.classification)
                if result.classification
                else None
            ),
            "deployment": (
                deployment_payload(result.deployment)
                if result.deployment
                else None
            ),
            "validation": (
                result.validation.model_dump(mode="json")
                if result.validation
                else None
            ),
            "fixes_applied": (
                list(result.fix_report.applied) if result.fix_report else []
            ),
        },
        metadata=metadata,
    )
