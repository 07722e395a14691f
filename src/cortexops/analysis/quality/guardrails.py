"""Guard rails: decide whether a prompt is worth generating for.

Five technical vocabularies add a fixed weight per matched term.
Two negative vocabularies (ambiguous business domains and clearly
unrelated topics) feed their own scores. The decision table in
``validate_prompt`` is evaluated strictly in order: a prompt mixing
technical and ambiguous vocabulary is still actionable when the
technical score clears the first threshold.
"""

from __future__ import annotations

import logging
import re

from cortexops.analysis.quality.schemas import ValidationVerdict
from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)
from cortexops.constants import (
    GUARDRAIL_AMBIGUOUS_INVALID_CONFIDENCE,
    GUARDRAIL_AMBIGUOUS_THRESHOLD,
    GUARDRAIL_AMBIGUOUS_VALID_CONFIDENCE,
    GUARDRAIL_CONFIDENCE_MULTIPLIER,
    GUARDRAIL_MAX_CONFIDENCE,
    GUARDRAIL_TECHNICAL_THRESHOLD,
    GuardRailWeight,
    PromptCategory,
)

logger = logging.getLogger(__name__)

TECHNICAL_SERVICES = (
    "nginx", "apache", "haproxy", "tomcat", "httpd",
    "mysql", "postgresql", "postgres", "mariadb", "mongodb", "redis",
    "elasticsearch", "docker", "kubernetes", "k8s", "ansible", "terraform",
    "jenkins", "gitlab", "github", "bitbucket",
    "php", "python", "node", "nodejs", "java", "go", "rust",
    "wordpress", "drupal", "joomla", "magento",
    "rabbitmq", "kafka", "activemq",
    "prometheus", "grafana", "zabbix", "nagios",
    "ssl", "tls", "https", "ssh", "vpn", "firewall",
    "backup", "restore", "cron", "systemd",
    "load balancer", "reverse proxy", "cache",
    "api", "rest", "graphql", "websocket",
)

TECHNICAL_CLOUD = (
    "aws", "amazon", "ec2", "eks", "s3", "rds", "lambda", "cloudformation",
    "azure", "microsoft azure", "aks", "vm azure",
    "gcp", "google cloud", "gke", "compute engine",
    "kubernetes", "k8s", "docker", "container", "conteneur",
    "terraform", "iac", "infrastructure as code",
    "helm", "kubectl", "kustomize",
)

TECHNICAL_SYSTEM = (
    "utilisateur", "user", "admin", "administrator", "root", "sudo",
    "sudoers", "groupe", "group", "permission", "chmod", "chown", "acl",
    "package", "paquet", "apt", "yum", "dnf", "zypper",
    "service", "daemon", "process", "processus",
    "fichier", "file", "directory", "répertoire", "dossier",
    "mount", "disk", "disque", "partition",
    "kernel", "noyau", "module",
    "selinux", "apparmor", "security", "sécurité",
)

TECHNICAL_OS = (
    "linux", "ubuntu", "debian", "centos", "rhel", "redhat", "fedora",
    "alpine", "arch", "rocky", "alma", "suse", "opensuse",
)

TECHNICAL_INFRA = (
    "server", "serveur", "cluster", "node", "noeud", "host", "hôte",
    "vm", "virtual machine", "container", "conteneur",
    "deployment", "déploiement", "configuration", "installation",
    "monitoring", "supervision", "logging", "logs",
    "network", "réseau", "port", "ip", "dns",
    "database", "base de données", "bdd",
    "web", "application", "app", "service",
    "infrastructure", "infra", "cloud", "provision", "provisionner",
)

AMBIGUOUS_TERMS = (
    "cinéma", "film", "movie",
    "école", "school", "education",
    "boutique", "shop", "store", "magasin",
    "restaurant", "café", "coffee",
    "hôtel",
    "blog", "site", "website",
    "portfolio", "cv", "resume",
)

INVALID_TERMS = (
    "amour", "love", "coeur", "heart",
    "musique", "music", "song", "chanson",
    "pizza", "burger", "food", "nourriture",
    "jeu", "game", "play",
    "voyage", "travel", "vacances", "vacation",
)

# Evaluated in this order; a term listed twice scores twice
_TECHNICAL_CATEGORIES: tuple[tuple[tuple[str, ...], int], ...] = (
    (TECHNICAL_SERVICES, GuardRailWeight.SERVICE),
    (TECHNICAL_CLOUD, GuardRailWeight.CLOUD),
    (TECHNICAL_SYSTEM, GuardRailWeight.SYSTEM),
    (TECHNICAL_OS, GuardRailWeight.OS),
    (TECHNICAL_INFRA, GuardRailWeight.INFRA),
)

EMPTY_MESSAGE = "Please describe the infrastructure you want to build."
AMBIGUOUS_MESSAGE = "Your request is missing technical details."
OFF_TOPIC_MESSAGE = (
    "CortexOps generates Ansible playbooks for IT infrastructure."
)
NO_SIGNAL_MESSAGE = "No technical service detected in your request."

REFINEMENT_SUGGESTIONS = (
    "Name the technologies to use (nginx, mysql, ...)",
    "Name the operating system (Ubuntu, CentOS, ...)",
    "Describe the target technical architecture",
)

AMBIGUOUS_EXAMPLES = (
    'Example: "Deploy a WordPress site with nginx and MySQL on Ubuntu"',
    'Example: "Install 3 CentOS servers with HAProxy and Apache"',
    'Example: "Configure a Kubernetes cluster with Prometheus monitoring"',
)

OFF_TOPIC_SUGGESTIONS = (
    "Describe a technical infrastructure (servers, services, applications)",
    'Example: "Install nginx with SSL on Ubuntu"',
    'Example: "Configure a Redis cluster with replication"',
)

NO_SIGNAL_SUGGESTIONS = (
    "CortexOps generates Ansible playbooks that deploy IT infrastructure",
    'Example: "Install an nginx web server with PHP and MySQL"',
    'Example: "Deploy HAProxy as a load balancer with 3 backends"',
    'Example: "Configure a Kubernetes cluster with 3 nodes"',
)

_SERVER_COUNT_RE = re.compile(r"(\d+)\s*(?:server|serveur)")


def _matches(
    text: NormalizedText, terms: tuple[str, ...]
) -> list[str]:
    words = text.words
    return [
        term
        for term in terms
        if contains_term(text.text, normalize_term(term), words)
    ]


def validate_prompt(text: str | None) -> ValidationVerdict:
    """Classify a prompt as technical, ambiguous, invalid or empty."""
    normalized = normalize(text)
    if normalized.is_blank:
        return ValidationVerdict(
            is_valid=False,
            category=PromptCategory.EMPTY,
            confidence=0,
            error_message=EMPTY_MESSAGE,
        )

    detected: dict[str, None] = {}
    technical_score = 0
    for terms, weight in _TECHNICAL_CATEGORIES:
        for term in _matches(normalized, terms):
            technical_score += weight
            detected.setdefault(term, None)

    ambiguous_score = (
        len(_matches(normalized, AMBIGUOUS_TERMS)) * GuardRailWeight.AMBIGUOUS
    )
    invalid_score = (
        len(_matches(normalized, INVALID_TERMS)) * GuardRailWeight.INVALID
    )
    detected_terms = list(detected)

    logger.debug(
        "event=guardrail_scored technical=%d ambiguous=%d invalid=%d",
        technical_score,
        ambiguous_score,
        invalid_score,
    )

    if technical_score >= GUARDRAIL_TECHNICAL_THRESHOLD:
        return ValidationVerdict(
            is_valid=True,
            category=PromptCategory.TECHNICAL,
            confidence=min(
                GUARDRAIL_MAX_CONFIDENCE,
                technical_score * GUARDRAIL_CONFIDENCE_MULTIPLIER,
            ),
            detected_terms=detected_terms,
        )

    if technical_score >= GUARDRAIL_AMBIGUOUS_THRESHOLD and ambiguous_score > 0:
        return ValidationVerdict(
            is_valid=True,
            category=PromptCategory.AMBIGUOUS,
            confidence=GUARDRAIL_AMBIGUOUS_VALID_CONFIDENCE,
            detected_terms=detected_terms,
            suggestions=list(REFINEMENT_SUGGESTIONS),
        )

    if ambiguous_score > 0 and technical_score < GUARDRAIL_AMBIGUOUS_THRESHOLD:
        return ValidationVerdict(
            is_valid=False,
            category=PromptCategory.AMBIGUOUS,
            confidence=GUARDRAIL_AMBIGUOUS_INVALID_CONFIDENCE,
            detected_terms=detected_terms,
            suggestions=list(AMBIGUOUS_EXAMPLES),
            error_message=AMBIGUOUS_MESSAGE,
        )

    if invalid_score > 0:
        return ValidationVerdict(
            is_valid=False,
            category=PromptCategory.INVALID,
            confidence=0,
            suggestions=list(OFF_TOPIC_SUGGESTIONS),
            error_message=OFF_TOPIC_MESSAGE,
        )

    return ValidationVerdict(
        is_valid=False,
        category=PromptCategory.INVALID,
        confidence=0,
        suggestions=list(NO_SIGNAL_SUGGESTIONS),
        error_message=NO_SIGNAL_MESSAGE,
    )


def technical_suggestions(text: str | None) -> list[str]:
    """Hints for details a technical prompt still leaves out."""
    normalized = normalize(text)
    words = normalized.words
    folded = normalized.text

    def has(term: str) -> bool:
        return contains_term(folded, normalize_term(term), words)

    suggestions: list[str] = []
    if not _matches(normalized, TECHNICAL_OS):
        suggestions.append(
            "Name the operating system (Ubuntu, CentOS, Debian, ...)"
        )

    if (has("web") or has("site")) and not (has("nginx") or has("apache")):
        suggestions.append("Add a web server (nginx, apache, ...)")

    if (has("app") or has("application")) and not (
        has("mysql") or has("postgres")
    ):
        suggestions.append(
            "Name a database (MySQL, PostgreSQL, MongoDB, ...)"
        )

    match = _SERVER_COUNT_RE.search(folded)
    if match and int(match.group(1)) > 1:
        if not (has("haproxy") or has("load")):
            suggestions.append(
                "Consider a load balancer (HAProxy) to spread the load"
            )

    return suggestions


def format_validation_error(verdict: ValidationVerdict) -> str:
    """Render a rejected verdict as a user-facing message."""
    message = verdict.error_message or "Invalid request"
    if verdict.suggestions:
        bullets = "\n".join(f"  - {s}" for s in verdict.suggestions)
        message += f"\n\nSuggestions:\n{bullets}"
    return message
