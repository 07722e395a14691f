"""Parameter record handed to template render functions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from cortexops.analysis.nlp.schemas import Entity
from cortexops.constants import (
    DEFAULT_HOSTS,
    ComplexityTier,
    Environment,
    Feature,
)

DEFAULT_PROJECT_NAME = "Simple Deployment"
DEFAULT_APP_NAME = "myapp"
DEFAULT_DOMAIN = "example.com"
DEFAULT_PORT = 80
DEFAULT_NODE_VERSION = "20"
DEFAULT_PYTHON_VERSION = "3.12"

_IP_RE = re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b")
_HOST_RE = re.compile(r"\b(?:sur|on|to)\s+([a-z0-9][a-z0-9.-]*)", re.IGNORECASE)
_PROJECT_RE = re.compile(
    r"\b(?:projet|project|application|app)\s+([a-z0-9_-]+)", re.IGNORECASE
)
_APP_RE = re.compile(
    r"\b(?:application|app|déployer|deploy)\s+([a-z0-9_-]+)", re.IGNORECASE
)
_DOMAIN_RE = re.compile(
    r"\b(?:domaine?|domain|site)\s*[:=]?\s*([a-z0-9.-]+\.[a-z]{2,})",
    re.IGNORECASE,
)
_PORT_RE = re.compile(r"\bport\s*[:=]?\s*(\d{1,5})\b", re.IGNORECASE)
_NODE_VERSION_RE = re.compile(
    r"\bnode\s*(?:js)?\s*(?:version)?\s*[:=]?\s*(\d+)\b", re.IGNORECASE
)
_PYTHON_VERSION_RE = re.compile(
    r"\bpython\s*(?:version)?\s*[:=]?\s*(\d+(?:\.\d+)?)\b", re.IGNORECASE
)

# Words after "on"/"sur" that name a platform, not an inventory target
_NOT_A_TARGET = frozenset({
    "ubuntu", "debian", "centos", "rhel", "redhat", "fedora", "alpine",
    "rocky", "alma", "suse", "linux", "aws", "azure", "gcp", "kubernetes",
    "k8s", "docker", "the", "le", "la", "les", "un", "une", "des", "a",
    "my", "mon", "ma", "mes", "port", "production", "staging",
})

# Generic nouns that follow "app"/"application" without naming it
_NOT_A_NAME = frozenset({
    "web", "avec", "with", "sur", "on", "en", "in", "de", "du", "the",
    "une", "un", "a", "node", "nodejs", "python", "java", "php",
})


@dataclass(frozen=True)
class TemplateParams:
    """Everything a template needs to render one document."""

    project_name: str = DEFAULT_PROJECT_NAME
    app_name: str = DEFAULT_APP_NAME
    environment: Environment = Environment.PRODUCTION
    tier: ComplexityTier = ComplexityTier.BASIC
    hosts: str = DEFAULT_HOSTS
    recipe: str = "generic"
    domain: str = DEFAULT_DOMAIN
    port: int = DEFAULT_PORT
    node_version: str = DEFAULT_NODE_VERSION
    python_version: str = DEFAULT_PYTHON_VERSION
    roles: tuple[str, ...] = ()
    features: frozenset[Feature] = frozenset()
    entities: tuple[Entity, ...] = field(default=(), compare=False)

    def has(self, feature: Feature) -> bool:
        return feature in self.features

    def entity_values(self, entity_type: str) -> list[str]:
        return [e.value for e in self.entities if e.type == entity_type]


def _first_group(pattern: re.Pattern[str], text: str, skip: frozenset[str]) -> str | None:
    for match in pattern.finditer(text):
        value = match.group(1).strip(".-")
        if value and value.lower() not in skip:
            return value
    return None


def extract_target(text: str) -> str | None:
    """Inventory target named in the prompt: an IP, else a host name."""
    ip = _IP_RE.search(text)
    if ip:
        return ip.group(0)
    return _first_group(_HOST_RE, text, _NOT_A_TARGET)


def extract_project_name(text: str) -> str | None:
    return _first_group(_PROJECT_RE, text, _NOT_A_NAME)


def extract_app_name(text: str) -> str | None:
    return _first_group(_APP_RE, text, _NOT_A_NAME)


def extract_variables(text: str) -> dict[str, str | int]:
    """Domain, port and runtime versions mentioned in the prompt."""
    found: dict[str, str | int] = {}
    if match := _DOMAIN_RE.search(text):
        found["domain"] = match.group(1).lower()
    if match := _PORT_RE.search(text):
        port = int(match.group(1))
        if 0 < port < 65536:
            found["port"] = port
    if match := _NODE_VERSION_RE.search(text):
        found["node_version"] = match.group(1)
    if match := _PYTHON_VERSION_RE.search(text):
        found["python_version"] = match.group(1)
    return found


def build_params(
    text: str,
    *,
    environment: Environment,
    tier: ComplexityTier,
    recipe: str,
    roles: list[str],
    features: frozenset[Feature],
    entities: list[Entity],
) -> TemplateParams:
    variables = extract_variables(text)
    return TemplateParams(
        project_name=extract_project_name(text) or DEFAULT_PROJECT_NAME,
        app_name=extract_app_name(text) or DEFAULT_APP_NAME,
        environment=environment,
        tier=tier,
        hosts=extract_target(text) or DEFAULT_HOSTS,
        recipe=recipe,
        domain=str(variables.get("domain", DEFAULT_DOMAIN)),
        port=int(variables.get("port", DEFAULT_PORT)),
        node_version=str(variables.get("node_version", DEFAULT_NODE_VERSION)),
        python_version=str(
            variables.get("python_version", DEFAULT_PYTHON_VERSION)
        ),
        roles=tuple(roles),
        features=features,
        entities=tuple(entities),
    )
