"""Public entry points of the prompt and document core.

Pure, synchronous functions; no state is kept between calls.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from cortexops.analysis.deployment.complexity import classify_complexity
from cortexops.analysis.deployment.context import classify_context
from cortexops.analysis.deployment.schemas import ComplexityVerdict, ContextVerdict
from cortexops.analysis.nlp.entities import extract_entities
from cortexops.analysis.nlp.intent import classify_intent
from cortexops.analysis.nlp.schemas import Entity, Intent
from cortexops.analysis.quality.guardrails import validate_prompt
from cortexops.analysis.text.normalizer import normalize
from cortexops.documents.fixes import smart_auto_fix
from cortexops.documents.schemas import Diagnostic
from cortexops.documents.validator import validate_document

__all__ = [
    "DeploymentClassification",
    "PromptClassification",
    "auto_fix",
    "classify_deployment",
    "classify_prompt",
    "validate_document",
    "validate_prompt",
]


@dataclass(frozen=True)
class PromptClassification:
    intent: Intent
    entities: list[Entity] = field(default_factory=lambda: list[Entity]())


@dataclass(frozen=True)
class DeploymentClassification:
    context: ContextVerdict
    complexity: ComplexityVerdict


def classify_prompt(text: str | None) -> PromptClassification:
    """Intent and entities of a prompt."""
    normalized = normalize(text)
    return PromptClassification(
        intent=classify_intent(normalized),
        entities=extract_entities(normalized),
    )


def classify_deployment(
    text: str | None,
    service_count: int | None = None,
) -> DeploymentClassification:
    normalized = normalize(text)
    return DeploymentClassification(
        context=classify_context(normalized),
        complexity=classify_complexity(normalized, service_count),
    )


def auto_fix(text: str, diagnostics: Sequence[Diagnostic | str]) -> str:
    """Apply the fixes addressing ``diagnostics`` once, in fixed order."""
    return smart_auto_fix(text, diagnostics)
