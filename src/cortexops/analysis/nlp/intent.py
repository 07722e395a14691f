"""Weighted keyword scoring and intent classification.

``score_keywords`` is shared with the generation router, which scores
its service recipes with the same algorithm.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from cortexops.analysis.nlp.schemas import Intent, KeywordRule
from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)
from cortexops.constants import (
    FALLBACK_INTENT,
    INTENT_MAX_SECONDARY,
    INTENT_PARTIAL_FACTOR,
    INTENT_START_BONUS,
    Confidence,
)

logger = logging.getLogger(__name__)

INTENT_RULES: dict[str, KeywordRule] = {
    "deployment": KeywordRule(
        keywords=(
            "déployer", "déploie", "deploy", "déploiement", "installer",
            "installe", "installation", "mettre en place", "configurer",
            "configure", "setup", "provisionner", "provision", "rollout",
            "release", "mise en production", "go-live", "lancer", "démarrer",
            "créer", "create", "ajouter", "add", "initialiser", "init",
        ),
        weight=10,
        related=("configuration", "infrastructure"),
    ),
    "security": KeywordRule(
        keywords=(
            "sécuriser", "sécurise", "secure", "sécurité", "security",
            "protéger", "protège", "protect", "hardening", "durcir",
            "conformité", "compliance", "audit", "scanner", "scan",
            "vulnérabilité", "chiffrer", "encrypt", "firewall", "ssl", "tls",
            "certificat", "penetration test", "pentest", "zero trust", "rbac",
            "iam", "authentication", "authorization", "sécurisation",
            "renforcement", "devsecops", "shift-left", "sast", "dast",
            "vulnerability", "cve", "exploit", "threat",
        ),
        weight=12,
        related=("monitoring", "compliance"),
    ),
    "monitoring": KeywordRule(
        keywords=(
            "monitorer", "monitor", "monitoring", "superviser", "supervision",
            "observer", "observabilité", "métriques", "metrics", "logs",
            "alertes", "alerts", "dashboard", "grafana", "prometheus",
            "tracer", "tracing", "apm", "observability", "telemetry",
            "télémétrie", "visualisation", "elasticsearch", "kibana",
            "datadog", "new relic", "splunk", "slo", "sli", "sla",
        ),
        weight=9,
        related=("logging", "alerting"),
    ),
    "cicd": KeywordRule(
        keywords=(
            "ci/cd", "ci cd", "cicd", "pipeline", "intégration continue",
            "déploiement continu", "continuous integration",
            "continuous deployment", "gitlab", "jenkins", "github actions",
            "automation", "automatiser", "rollback", "blue-green", "canary",
            "gitops", "argocd", "flux", "progressive delivery",
            "feature flags", "trunk-based", "devops", "release automation",
            "build automation", "test automation", "deployment automation",
            "circleci", "travis", "bamboo",
        ),
        weight=11,
        related=("deployment", "testing"),
    ),
    "infrastructure": KeywordRule(
        keywords=(
            "infrastructure", "infra", "cluster", "serveur", "server", "vm",
            "machine", "kubernetes", "k8s", "docker", "container", "cloud",
            "aws", "azure", "gcp", "terraform", "iac",
            "infrastructure as code", "openstack", "vmware", "hyperviseur",
            "bare metal", "on-premise", "datacentre", "datacenter", "réseau",
            "network", "load balancer", "cdn", "edge computing",
            "fog computing", "microservices", "serverless",
        ),
        weight=10,
        related=("networking", "storage"),
    ),
    "database": KeywordRule(
        keywords=(
            "base de données", "database", "db", "postgres", "postgresql",
            "mysql", "mongodb", "redis", "elasticsearch", "backup",
            "sauvegarde", "réplication", "replication", "migration", "schema",
        ),
        weight=9,
        related=("backup", "replication"),
    ),
    "multicloud": KeywordRule(
        keywords=(
            "multi-cloud", "multicloud", "plusieurs clouds", "hybride",
            "hybrid", "aws et azure", "aws et gcp", "tous les clouds",
            "cross-cloud", "federation",
        ),
        weight=12,
        related=("infrastructure", "orchestration"),
    ),
    "orchestration": KeywordRule(
        keywords=(
            "orchestrer", "orchestration", "coordonner", "coordination",
            "workflow", "séquence", "sequence", "étapes", "steps",
            "pipeline complexe", "automation avancée",
        ),
        weight=11,
        related=("cicd", "infrastructure"),
    ),
    "compliance": KeywordRule(
        keywords=(
            "conformité", "compliance", "rgpd", "gdpr", "iso", "soc2",
            "hipaa", "pci-dss", "cis", "benchmark", "standard", "norme",
            "audit", "certification",
        ),
        weight=11,
        related=("security", "monitoring"),
    ),
}


def _strict_keywords(rule: KeywordRule) -> list[str]:
    # Dedupe after normalization: "multi-cloud" and "multi cloud" are one keyword
    seen: dict[str, None] = {}
    for keyword in rule.keywords:
        normalized = normalize_term(keyword, strict=True)
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


def _score_rule(text: NormalizedText, rule: KeywordRule) -> float:
    strict = text.strict
    words = text.words
    score = 0.0

    for keyword in _strict_keywords(rule):
        if contains_term(strict, keyword, words):
            score += rule.weight
            if strict == keyword or strict.startswith(keyword + " "):
                score += INTENT_START_BONUS
            continue

        parts = keyword.split()
        if len(parts) < 2:
            continue
        matched = sum(1 for part in parts if part in words)
        if matched:
            score += matched / len(parts) * rule.weight * INTENT_PARTIAL_FACTOR

    return score


def score_keywords(
    text: str | NormalizedText,
    rules: Mapping[str, KeywordRule],
) -> list[tuple[str, float]]:
    """Score every rule against ``text``.

    Returns (name, score) pairs with zero scores dropped, sorted by
    descending score. Ties keep the declaration order of ``rules``.
    """
    normalized = text if isinstance(text, NormalizedText) else normalize(text)
    if normalized.is_blank:
        return []

    scored = [
        (name, score)
        for name, rule in rules.items()
        if (score := _score_rule(normalized, rule)) > 0
    ]
    return sorted(scored, key=lambda item: item[1], reverse=True)


def classify_intent(text: str | NormalizedText) -> Intent:
    """Pick the primary intent and up to three secondary ones."""
    ranked = score_keywords(text, INTENT_RULES)
    if not ranked:
        return Intent(
            primary=FALLBACK_INTENT,
            secondary=(),
            confidence=Confidence.INTENT_FALLBACK,
        )

    primary, primary_score = ranked[0]
    secondary = [
        name for name, _ in ranked[1:INTENT_MAX_SECONDARY + 1]
    ]
    for related in INTENT_RULES[primary].related:
        if len(secondary) >= INTENT_MAX_SECONDARY:
            break
        if related != primary and related not in secondary:
            secondary.append(related)

    weight = INTENT_RULES[primary].weight
    confidence = max(
        min(primary_score / (weight * 2), 1.0),
        Confidence.INTENT_FLOOR,
    )
    logger.debug(
        "event=intent_classified primary=%s score=%.2f secondary=%s",
        primary,
        primary_score,
        ",".join(secondary),
    )
    return Intent(
        primary=primary,
        secondary=tuple(secondary),
        confidence=confidence,
        scores=dict(ranked),
    )
