"""Complexity tiering: additive score over six indicators."""

from __future__ import annotations

import logging

from cortexops.analysis.deployment.roles import (
    count_services,
    detect_required_roles,
)
from cortexops.analysis.deployment.schemas import (
    ComplexityIndicators,
    ComplexityVerdict,
)
from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)
from cortexops.constants import (
    COMPLEXITY_BASIC_MAX,
    COMPLEXITY_CICD_POINTS,
    COMPLEXITY_CUSTOM_LOGIC_POINTS,
    COMPLEXITY_FEW_SERVICES_POINTS,
    COMPLEXITY_MANY_SERVICES_MIN,
    COMPLEXITY_MANY_SERVICES_POINTS,
    COMPLEXITY_MONITORING_POINTS,
    COMPLEXITY_MULTI_HOST_POINTS,
    COMPLEXITY_PRO_MAX,
    COMPLEXITY_SECURITY_POINTS,
    ComplexityTier,
    Confidence,
    Feature,
)

logger = logging.getLogger(__name__)

MULTI_HOST_TERMS = (
    "plusieurs serveurs", "multiple servers", "multi-serveur", "cluster",
    "load balanc", "haute disponibilité", "high availability", "ha",
    "répartition de charge", "distributed", "distribué",
)

OBSERVABILITY_TERMS = (
    "prometheus", "grafana", "monitoring", "métriques", "metrics",
    "observabilité", "observability", "alerting", "alertes",
    "logs centralisés", "centralized logging", "elk", "loki",
    "tempo", "jaeger", "tracing", "datadog", "newrelic",
)

DELIVERY_TERMS = (
    "ci/cd", "cicd", "pipeline", "gitlab ci", "github actions",
    "jenkins", "automated deploy", "déploiement automatique",
    "continuous deployment", "continuous integration",
    "devops", "gitops", "argocd", "flux",
)

CUSTOM_LOGIC_TERMS = (
    "si", "when", "condition", "selon", "depending on", "dynamic",
    "dynamique", "calculer", "calculate", "script python", "script bash",
    "personnalisé", "custom", "spécifique", "specific",
)

SECURITY_TERMS = (
    "falco", "trivy", "vulnerability scan", "scan de vulnérabilités",
    "security audit", "audit de sécurité", "compliance", "conformité",
    "hardening", "durcissement", "intrusion detection", "ids",
    "waf", "firewall applicatif", "selinux", "apparmor",
)

_RECOMMENDATIONS: dict[ComplexityTier, str] = {
    ComplexityTier.BASIC: (
        "Short, direct playbook suited to beginners"
    ),
    ComplexityTier.PRO: (
        "Structured playbook with handlers and templates"
    ),
    ComplexityTier.ENTERPRISE: (
        "Complete playbook with monitoring, CI/CD, reporting and validation"
    ),
}

_TIER_CONFIDENCE: dict[ComplexityTier, float] = {
    ComplexityTier.BASIC: Confidence.TIER_BASIC,
    ComplexityTier.PRO: Confidence.TIER_PRO,
    ComplexityTier.ENTERPRISE: Confidence.TIER_ENTERPRISE,
}

# Static matrix; not derived from the score
_FEATURE_MATRIX: dict[ComplexityTier, frozenset[Feature]] = {
    ComplexityTier.BASIC: frozenset(),
    ComplexityTier.PRO: frozenset({
        Feature.CICD,
        Feature.VALIDATION,
        Feature.MULTISERVER,
    }),
    ComplexityTier.ENTERPRISE: frozenset(Feature),
}


def _any_term(text: NormalizedText, terms: tuple[str, ...]) -> bool:
    words = text.words
    return any(
        contains_term(text.text, normalize_term(term), words)
        for term in terms
    )


def detect_indicators(
    text: str | NormalizedText, service_count: int
) -> ComplexityIndicators:
    normalized = text if isinstance(text, NormalizedText) else normalize(text)
    return ComplexityIndicators(
        service_count=max(service_count, 0),
        multi_host=_any_term(normalized, MULTI_HOST_TERMS),
        observability=_any_term(normalized, OBSERVABILITY_TERMS),
        continuous_delivery=_any_term(normalized, DELIVERY_TERMS),
        custom_logic=_any_term(normalized, CUSTOM_LOGIC_TERMS),
        advanced_security=_any_term(normalized, SECURITY_TERMS),
    )


def tier_for_score(score: int) -> ComplexityTier:
    if score <= COMPLEXITY_BASIC_MAX:
        return ComplexityTier.BASIC
    if score <= COMPLEXITY_PRO_MAX:
        return ComplexityTier.PRO
    return ComplexityTier.ENTERPRISE


def score_indicators(
    indicators: ComplexityIndicators,
) -> tuple[int, list[str]]:
    """Additive score and the reason behind each contribution.

    Non-decreasing in every indicator.
    """
    score = 0
    reasons: list[str] = []
    count = indicators.service_count

    if count >= COMPLEXITY_MANY_SERVICES_MIN:
        score += COMPLEXITY_MANY_SERVICES_POINTS
        reasons.append(f"Complex infrastructure ({count} services)")
    elif count >= 2:
        score += COMPLEXITY_FEW_SERVICES_POINTS
        reasons.append(f"Multiple services ({count})")
    else:
        reasons.append(f"Single service ({count})")

    if indicators.multi_host:
        score += COMPLEXITY_MULTI_HOST_POINTS
        reasons.append("Multi-server deployment")
    if indicators.observability:
        score += COMPLEXITY_MONITORING_POINTS
        reasons.append("Monitoring and observability required")
    if indicators.continuous_delivery:
        score += COMPLEXITY_CICD_POINTS
        reasons.append("CI/CD integration")
    if indicators.custom_logic:
        score += COMPLEXITY_CUSTOM_LOGIC_POINTS
        reasons.append("Custom logic")
    if indicators.advanced_security:
        score += COMPLEXITY_SECURITY_POINTS
        reasons.append("Advanced security features")

    return score, reasons


def classify_complexity(
    text: str | NormalizedText,
    service_count: int | None = None,
) -> ComplexityVerdict:
    """Tier a prompt as basic, pro or enterprise.

    When ``service_count`` is omitted it is derived from the roles
    detected in ``text``.
    """
    normalized = text if isinstance(text, NormalizedText) else normalize(text)
    if service_count is None:
        service_count = count_services(detect_required_roles(normalized))

    indicators = detect_indicators(normalized, service_count)
    score, reasons = score_indicators(indicators)
    tier = tier_for_score(score)

    logger.debug(
        "event=complexity_classified tier=%s score=%d services=%d",
        tier,
        score,
        indicators.service_count,
    )
    return ComplexityVerdict(
        tier=tier,
        score=score,
        confidence=_TIER_CONFIDENCE[tier],
        indicators=indicators,
        reasons=reasons,
        recommendation=_RECOMMENDATIONS[tier],
    )


def should_include_feature(
    tier: ComplexityTier, feature: Feature
) -> bool:
    return feature in _FEATURE_MATRIX[tier]
