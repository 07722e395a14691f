"""Role detection: which service roles a prompt asks for.

The role list drives the service count of the complexity score and
the role layout of conventional-host playbooks.
"""

from __future__ import annotations

from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)

COMMON_ROLE = "common"
SECURITY_ROLE = "security"

# role -> terms that request it, in output order
ROLE_TERMS: dict[str, tuple[str, ...]] = {
    "nginx": ("nginx", "apache"),
    "postgresql": ("postgres", "postgresql"),
    "mysql": ("mysql", "mariadb"),
    "mongodb": ("mongodb", "mongo"),
    "redis": ("redis",),
    "pythonapp": ("python", "django", "flask", "fastapi"),
    "nodeapp": ("node", "nodejs", "node.js", "express"),
    "javaapp": ("java", "spring", "tomcat"),
    "phpapp": ("php", "laravel", "symfony"),
    "docker": ("docker",),
    "monitoring": ("prometheus", "grafana"),
    "firewall": ("firewall", "ufw", "iptables"),
    "ssl": ("ssl", "certbot", "letsencrypt"),
}

# Docker under a cluster is the cluster's business, not a host role
_DOCKER_EXCLUDED_BY = ("kubernetes",)

_BASELINE_ROLES = (COMMON_ROLE, SECURITY_ROLE)


def detect_required_roles(text: str | NormalizedText) -> list[str]:
    """Roles needed for ``text``, ``common`` first.

    Falls back to ``["common", "security"]`` when no role matched.
    """
    normalized = text if isinstance(text, NormalizedText) else normalize(text)
    words = normalized.words

    def has(term: str) -> bool:
        return contains_term(normalized.text, normalize_term(term), words)

    roles: list[str] = []
    for role, terms in ROLE_TERMS.items():
        if not any(has(term) for term in terms):
            continue
        if role == "docker" and any(has(t) for t in _DOCKER_EXCLUDED_BY):
            continue
        roles.append(role)

    if not roles:
        return list(_BASELINE_ROLES)
    return [COMMON_ROLE, *roles]


def count_services(roles: list[str]) -> int:
    """Number of roles that are real services."""
    return sum(1 for role in roles if role not in _BASELINE_ROLES)
