"""Deployment context detection.

A priority-ordered decision procedure over vocabulary tests. The
order is fixed: serverless, then simple containers, then explicit
cluster orchestration (escalated to hybrid), then cloud provisioning,
then conventional hosts. Anything left over defaults to conventional
hosts at low confidence, since most prompts under-specify the target
and the simplest context avoids over-engineering the output.
"""

from __future__ import annotations

import logging

from cortexops.analysis.deployment.schemas import (
    ORCHESTRATION_NONE,
    ContextVerdict,
)
from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)
from cortexops.constants import Confidence, DeploymentContext

logger = logging.getLogger(__name__)

CLUSTER_TERMS = (
    "kubernetes", "k8s", "cluster k8s", "eks", "aks", "gke",
    "pod", "pods", "deployment k8s", "namespace", "helm", "kubectl",
    "ingress controller", "service mesh", "istio", "kustomize",
    "operator", "crd", "statefulset",
)

HOST_TERMS = (
    "ubuntu", "debian", "centos", "rhel", "redhat", "amazon linux",
    "serveur", "server", "vm", "ec2", "instance", "machine",
    "vps", "droplet", "linode",
)

SYSTEMD_TERMS = (
    "systemd", "systemctl", "service", "daemon",
    "auto-start", "démarrage automatique", "boot",
)

WEB_SERVER_TERMS = (
    "nginx", "apache", "reverse proxy", "proxy inverse",
    "load balancer", "haproxy", "caddy",
)

PROVISIONING_TERMS = (
    "terraform", "cloudformation", "pulumi", "cdk",
    "provisionner", "créer infra", "infrastructure as code",
    "vpc", "subnet", "security group", "réseau",
)

COMPOSE_TERMS = (
    "docker compose", "docker-compose", "compose.yml",
    "docker stack", "swarm",
)

SERVERLESS_TERMS = (
    "lambda", "function", "serverless", "cloud function",
    "azure functions", "vercel", "netlify",
)

CONNECTOR_TERMS = ("then", "puis", "ensuite", "after that")

_EXPECTED_COMPONENTS: dict[DeploymentContext, tuple[str, ...]] = {
    DeploymentContext.CLASSIC_LINUX: (
        "nginx", "systemd", "application", "database", "firewall",
    ),
    DeploymentContext.KUBERNETES: (
        "namespace", "deployment", "service", "ingress", "configmap",
    ),
    DeploymentContext.CLOUD_PROVISIONING: (
        "vpc", "subnets", "security-groups", "instances",
    ),
    DeploymentContext.HYBRID: (
        "terraform", "ansible-roles", "kubernetes-manifests",
    ),
    DeploymentContext.CONTAINER_SIMPLE: (
        "docker-compose", "volumes", "networks",
    ),
    DeploymentContext.SERVERLESS: (
        "lambda", "api-gateway", "dynamodb", "sqs",
    ),
}

_ROLE_BASED_CONTEXTS = frozenset({
    DeploymentContext.CLASSIC_LINUX,
    DeploymentContext.HYBRID,
})


def _found(text: NormalizedText, terms: tuple[str, ...]) -> list[str]:
    words = text.words
    return [
        term
        for term in terms
        if contains_term(text.text, normalize_term(term), words)
    ]


def _host_tools(text: NormalizedText) -> list[str]:
    tools: list[str] = []
    if _found(text, ("nginx", "apache")):
        tools.append("nginx")
    if _found(text, ("systemd", "service")):
        tools.append("systemd")
    if _found(text, ("postgres", "mysql")):
        tools.append("postgresql")
    if _found(text, ("node", "python", "java")):
        tools.append("application-runtime")
    return tools


def classify_context(text: str | NormalizedText) -> ContextVerdict:
    """Pick exactly one deployment context for ``text``."""
    normalized = text if isinstance(text, NormalizedText) else normalize(text)

    cluster = _found(normalized, CLUSTER_TERMS)
    hosts = _found(normalized, HOST_TERMS)
    systemd = _found(normalized, SYSTEMD_TERMS)
    web = _found(normalized, WEB_SERVER_TERMS)
    provisioning = _found(normalized, PROVISIONING_TERMS)
    compose = _found(normalized, COMPOSE_TERMS)
    serverless = _found(normalized, SERVERLESS_TERMS)
    connectors = _found(normalized, CONNECTOR_TERMS)

    verdict: ContextVerdict
    if serverless:
        verdict = ContextVerdict(
            context=DeploymentContext.SERVERLESS,
            confidence=Confidence.CONTEXT_SERVERLESS,
            targets=["cloud-functions"],
            tools=["aws-lambda", "api-gateway"],
            indicators=serverless,
            recommendation="Use the Serverless Framework or AWS SAM",
        )
    elif compose and not cluster:
        verdict = ContextVerdict(
            context=DeploymentContext.CONTAINER_SIMPLE,
            confidence=Confidence.CONTEXT_CONTAINER_SIMPLE,
            targets=["docker-host"],
            tools=["docker", "compose"],
            orchestration="docker-compose",
            indicators=compose,
            recommendation="Render a compose file and deploy it with Ansible",
        )
    elif cluster and (provisioning or (hosts and connectors)):
        verdict = ContextVerdict(
            context=DeploymentContext.HYBRID,
            confidence=Confidence.CONTEXT_HYBRID,
            targets=["cloud", "kubernetes"],
            tools=["terraform", "ansible", "kubectl", "helm"],
            orchestration="kubernetes",
            indicators=cluster + provisioning + hosts + connectors,
            recommendation=(
                "Pipeline: Terraform (infrastructure), Ansible "
                "(configuration), Kubernetes (applications)"
            ),
        )
    elif cluster:
        verdict = ContextVerdict(
            context=DeploymentContext.KUBERNETES,
            confidence=Confidence.CONTEXT_KUBERNETES,
            targets=["kubernetes-cluster"],
            tools=["kubectl", "helm", "kustomize"],
            orchestration="kubernetes",
            indicators=cluster,
            recommendation="Ansible playbook using kubernetes.core modules",
        )
    elif provisioning:
        verdict = ContextVerdict(
            context=DeploymentContext.CLOUD_PROVISIONING,
            confidence=Confidence.CONTEXT_CLOUD_PROVISIONING,
            targets=["cloud-provider"],
            tools=["terraform", "ansible"],
            indicators=provisioning,
            recommendation=(
                "Terraform for infrastructure, then Ansible for configuration"
            ),
        )
    elif hosts or systemd or web:
        verdict = ContextVerdict(
            context=DeploymentContext.CLASSIC_LINUX,
            confidence=Confidence.CONTEXT_CLASSIC_LINUX,
            targets=hosts or ["ubuntu"],
            tools=_host_tools(normalized) or ["systemd", "nginx"],
            indicators=hosts + systemd + web,
            recommendation=(
                "Role-based Ansible playbook (nginx, app, database)"
            ),
        )
    else:
        verdict = ContextVerdict(
            context=DeploymentContext.CLASSIC_LINUX,
            confidence=Confidence.CONTEXT_DEFAULT,
            targets=["linux-servers"],
            tools=["systemd", "nginx"],
            orchestration=ORCHESTRATION_NONE,
            indicators=["generic-prompt"],
            recommendation="Conventional Ansible playbook with best practices",
        )

    logger.debug(
        "event=context_classified context=%s confidence=%.2f",
        verdict.context,
        verdict.confidence,
    )
    return verdict


def needs_role_based_structure(context: DeploymentContext) -> bool:
    return context in _ROLE_BASED_CONTEXTS


def expected_components(context: DeploymentContext) -> list[str]:
    """Components a playbook for ``context`` is expected to contain."""
    return list(_EXPECTED_COMPONENTS.get(context, ()))
