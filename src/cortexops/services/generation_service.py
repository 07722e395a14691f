"""Generation pipeline: prompt in, validated playbook out.

Stages run in order and each one is timed:

  1. guard_rail: reject prompts with no technical signal
  2. classify: intent and entities
  3. deployment: context and complexity tier
  4. render: template lookup and rendering
  5. validate: structural validation of the rendered playbook
  6. auto_fix: fix-until-stable loop when validation failed

A failing stage is logged and recorded in ``stages``; it never
propagates.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from cortexops.analysis.quality.schemas import ValidationVerdict
from cortexops.config import Settings
from cortexops.constants import ID_HEX_LENGTH, Environment, StageOutcome
from cortexops.core import (
    DeploymentClassification,
    PromptClassification,
    classify_deployment,
    classify_prompt,
    validate_prompt,
)
from cortexops.documents.fixes import fix_until_stable
from cortexops.documents.schemas import DocumentValidation, FixReport
from cortexops.documents.validator import validate_document
from cortexops.generation.registry import TemplateRegistry
from cortexops.generation.router import GeneratedPlaybook, generate
from cortexops.logger import RequestLogger

logger = logging.getLogger(__name__)


@dataclass
class StageStatus:
    """Status of a pipeline stage."""

    name: str
    ok: bool
    duration_ms: float = 0.0
    error: str | None = None

    @property
    def outcome(self) -> StageOutcome:
        return StageOutcome.COMPLETED if self.ok else StageOutcome.FAILED


@dataclass
class GenerationResult:
    """Full result of a pipeline run."""

    request_id: str
    prompt: str
    environment: Environment
    stages: list[StageStatus] = field(
        default_factory=lambda: list[StageStatus]()
    )
    verdict: ValidationVerdict | None = None
    classification: PromptClassification | None = None
    deployment: DeploymentClassification | None = None
    playbook: GeneratedPlaybook | None = None
    validation: DocumentValidation | None = None
    fix_report: FixReport | None = None
    content: str | None = None
    error: str | None = None
    total_duration_ms: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.verdict is not None and self.verdict.is_valid

    @property
    def ok(self) -> bool:
        return (
            self.content is not None
            and self.validation is not None
            and self.validation.valid
        )


def run_generation(
    prompt: str,
    settings: Settings | None = None,
    *,
    environment: Environment | None = None,
    registry: TemplateRegistry | None = None,
    request_logger: RequestLogger | None = None,
    request_id: str | None = None,
) -> GenerationResult:
    cfg = settings or Settings()
    result = GenerationResult(
        request_id=request_id or uuid.uuid4().hex[:ID_HEX_LENGTH],
        prompt=prompt,
        environment=environment or cfg.default_environment,
    )
    t0 = time.monotonic()

    if len(prompt) > cfg.max_prompt_length:
        result.error = (
            f"Prompt exceeds {cfg.max_prompt_length} characters"
        )
        logger.warning(
            "event=prompt_rejected request_id=%s reason=too_long length=%d",
            result.request_id,
            len(prompt),
        )
        return _finish(result, t0, request_logger)

    _run_pipeline(result, cfg, registry)
    return _finish(result, t0, request_logger)


def _run_pipeline(
    result: GenerationResult,
    cfg: Settings,
    registry: TemplateRegistry | None,
) -> None:
    prompt = result.prompt

    verdict, status = _run_stage_sync(
        "guard_rail", lambda: validate_prompt(prompt)
    )
    result.stages.append(status)
    if verdict is None:
        result.error = status.error
        return
    result.verdict = verdict
    if not verdict.is_valid:
        result.error = verdict.error_message
        logger.info(
            "event=prompt_rejected request_id=%s category=%s",
            result.request_id,
            verdict.category,
        )
        return

    classification, status = _run_stage_sync(
        "classify", lambda: classify_prompt(prompt)
    )
    result.stages.append(status)
    result.classification = classification

    deployment, status = _run_stage_sync(
        "deployment", lambda: classify_deployment(prompt)
    )
    result.stages.append(status)
    if deployment is None:
        result.error = status.error
        return
    result.deployment = deployment

    entities = classification.entities if classification else []
    playbook, status = _run_stage_sync(
        "render",
        lambda: generate(
            deployment.context,
            deployment.complexity,
            entities,
            result.environment,
            prompt=prompt,
            registry=registry,
        ),
    )
    result.stages.append(status)
    if playbook is None:
        result.error = status.error
        return
    result.playbook = playbook
    result.content = playbook.content

    validation, status = _run_stage_sync(
        "validate", lambda: validate_document(playbook.content)
    )
    result.stages.append(status)
    result.validation = validation
    if validation is None or validation.valid or not cfg.auto_fix_enabled:
        return

    report, status = _run_stage_sync(
        "auto_fix",
        lambda: fix_until_stable(
            playbook.content, max_passes=cfg.auto_fix_max_passes
        ),
    )
    result.stages.append(status)
    if report is None:
        return
    result.fix_report = report
    result.content = report.text
    result.validation = validate_document(report.text)


def _finish(
    result: GenerationResult,
    t0: float,
    request_logger: RequestLogger | None,
) -> GenerationResult:
    result.total_duration_ms = _elapsed(t0)
    deployment = result.deployment
    logger.info(
        "event=generation_complete request_id=%s ok=%s duration_ms=%.1f",
        result.request_id,
        result.ok,
        result.total_duration_ms,
    )
    if request_logger is not None:
        for stage in result.stages:
            request_logger.log_stage(
                result.request_id,
                stage.name,
                stage.outcome,
                stage.duration_ms,
                stage.error,
            )
            if stage.error:
                request_logger.log_error(
                    result.request_id, stage.name, stage.error
                )
        request_logger.log_request(
            request_id=result.request_id,
            prompt=result.prompt,
            category=(
                result.verdict.category if result.verdict else "unknown"
            ),
            context=deployment.context.context if deployment else None,
            tier=deployment.complexity.tier if deployment else None,
            diagnostics=(
                len(result.validation.diagnostics)
                if result.validation
                else 0
            ),
            duration_ms=result.total_duration_ms,
        )
    return result


def _run_stage_sync[T](
    name: str,
    fn: Callable[[], T],
) -> tuple[T | None, StageStatus]:
    """Run a sync stage with error capture."""
    t0 = time.monotonic()
    try:
        out = fn()
        return out, StageStatus(
            name=name, ok=True, duration_ms=_elapsed(t0)
        )
    except Exception as exc:
        logger.exception("event=stage_failed stage=%s", name)
        return None, StageStatus(
            name=name,
            ok=False,
            duration_ms=_elapsed(t0),
            error=str(exc),
        )


def _elapsed(t0: float) -> float:
    return (time.monotonic() - t0) * 1000
