"""Pydantic models for deployment context and complexity verdicts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cortexops.constants import ComplexityTier, DeploymentContext

ORCHESTRATION_NONE = "none"


class ContextVerdict(BaseModel):
    """The deployment target picked for a prompt."""

    model_config = ConfigDict(frozen=True)

    context: DeploymentContext
    confidence: float = Field(ge=0.0, le=1.0)
    targets: list[str] = Field(default_factory=lambda: list[str]())
    tools: list[str] = Field(default_factory=lambda: list[str]())
    orchestration: str = ORCHESTRATION_NONE
    indicators: list[str] = Field(default_factory=lambda: list[str]())
    recommendation: str = ""


class ComplexityIndicators(BaseModel):
    """The six inputs of the complexity score."""

    model_config = ConfigDict(frozen=True)

    service_count: int = Field(default=0, ge=0)
    multi_host: bool = False
    observability: bool = False
    continuous_delivery: bool = False
    custom_logic: bool = False
    advanced_security: bool = False


class ComplexityVerdict(BaseModel):
    """Complexity tier with the reasons that produced its score."""

    model_config = ConfigDict(frozen=True)

    tier: ComplexityTier
    score: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)
    indicators: ComplexityIndicators
    reasons: list[str] = Field(default_factory=lambda: list[str]())
    recommendation: str = ""
