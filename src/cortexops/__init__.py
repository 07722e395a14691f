"""Prompt guard rails, deployment classification and playbook repair."""

__version__ = "0.1.0"

from cortexops.core import (  # noqa: E402
    DeploymentClassification,
    PromptClassification,
    auto_fix,
    classify_deployment,
    classify_prompt,
    validate_document,
    validate_prompt,
)

__all__ = [
    "DeploymentClassification",
    "PromptClassification",
    "__version__",
    "auto_fix",
    "classify_deployment",
    "classify_prompt",
    "validate_document",
    "validate_prompt",
]
