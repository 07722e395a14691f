"""Playbook validation and auto-fix routes."""

from __future__ import annotations

from fastapi import APIRouter

from cortexops.api.schemas import APIResponse, DocumentRequest, FixRequest
from cortexops.documents.fixes import (
    auto_fix_with_report,
    fix_until_stable,
    get_fixes,
)
from cortexops.documents.schemas import Diagnostic
from cortexops.documents.validator import validate_document

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("/validate")
async def validate(body: DocumentRequest) -> APIResponse:
    """Diagnostics for a playbook plus the fixes that apply."""
    validation = validate_document(body.content)
    fixes = get_fixes(validation.diagnostics)
    return APIResponse(
        success=True,
        data=validation.model_dump(mode="json"),
        metadata={
            "fixes": [
                {
                    "fix_id": f.fix_id,
                    "title": f.title,
                    "description": f.description,
                }
                for f in fixes
            ],
        },
    )


@router.post("/fix")
async def fix(body: FixRequest) -> APIResponse:
    """Apply automatic fixes and re-validate the result."""
    if body.until_stable:
        report = fix_until_stable(body.content, max_passes=body.max_passes)
    else:
        diagnostics: list[Diagnostic | str]
        if body.diagnostics is None:
            diagnostics = list(validate_document(body.content).diagnostics)
        else:
            diagnostics = list(body.diagnostics)
        report = auto_fix_with_report(body.content, diagnostics)

    validation = validate_document(report.text)
    return APIResponse(
        success=True,
        data={
            "content": report.text,
            "changed": report.changed,
            "applied": list(report.applied),
            "noops": list(report.noops),
            "passes": report.passes,
            "validation": validation.model_dump(mode="json"),
        },
    )
