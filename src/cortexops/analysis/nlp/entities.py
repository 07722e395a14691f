"""Vocabulary-based entity extraction.

Each canonical name carries a list of surface variants (French and
English, accented or not). Variants are normalized once at import
time and tested as substrings of the normalized prompt. The first
variant that matches wins and a canonical name is reported at most
once. Output order follows the vocabulary, not the prompt.
"""

from __future__ import annotations

from cortexops.analysis.nlp.schemas import Entity
from cortexops.analysis.text.normalizer import (
    NormalizedText,
    contains_term,
    normalize,
    normalize_term,
)
from cortexops.constants import EntityType

_SERVICES: dict[str, tuple[str, ...]] = {
    "nginx": ("nginx", "reverse proxy", "proxy inverse", "web server", "serveur web"),
    "apache": ("apache", "httpd"),
    "haproxy": ("haproxy", "load balancer", "répartiteur de charge"),
    "postgres": ("postgres", "postgresql", "pgsql"),
    "mysql": ("mysql", "mariadb"),
    "redis": ("redis", "cache"),
    "mongodb": ("mongodb", "mongo", "nosql"),
    "elasticsearch": ("elasticsearch", "elastic", "elk"),
    "kafka": ("kafka", "streaming", "message broker"),
    "rabbitmq": ("rabbitmq", "amqp"),
    "prometheus": ("prometheus", "métriques"),
    "grafana": ("grafana", "dashboard", "visualisation"),
    "vault": ("vault", "hashicorp vault", "secret manager"),
    "consul": ("consul", "service discovery"),
    "jenkins": ("jenkins", "ci server"),
    "gitlab": ("gitlab", "gitlab ci", "gitlab runner"),
    "docker": ("docker", "conteneur", "container"),
    "kubernetes": ("kubernetes", "k8s"),
    "helm": ("helm", "helm chart"),
    "istio": ("istio", "service mesh"),
    "argocd": ("argocd", "argo cd", "gitops"),
    "traefik": ("traefik", "ingress", "edge router"),
    "terraform": ("terraform", "infrastructure as code"),
    "nodejs": ("nodejs", "node.js", "express"),
    "python": ("python", "django", "flask", "fastapi"),
}

_SYSTEM_MANAGEMENT: dict[str, tuple[str, ...]] = {
    "user_management": ("utilisateur", "user", "admin", "compte", "account"),
    "permissions": ("sudo", "sudoers", "permission", "chmod", "chown", "acl", "droit"),
    "packages": ("package", "paquet", "apt", "yum", "dnf"),
    "system_services": ("daemon", "systemd", "systemctl"),
    "files": ("fichier", "file", "directory", "répertoire", "dossier"),
    "firewall": ("firewall", "pare-feu", "iptables", "ufw", "selinux", "apparmor"),
}

_PLATFORMS: dict[str, tuple[str, ...]] = {
    "aws": ("aws", "amazon web services", "ec2", "eks", "s3", "rds", "lambda"),
    "azure": ("azure", "microsoft azure", "aks"),
    "gcp": ("gcp", "google cloud", "gke"),
    "digitalocean": ("digitalocean", "droplet"),
    "ovh": ("ovh", "ovhcloud"),
    "scaleway": ("scaleway",),
    "baremetal": ("bare metal", "serveur physique", "on-premise", "on premise"),
    "ubuntu": ("ubuntu",),
    "debian": ("debian",),
    "centos": ("centos",),
    "rhel": ("rhel", "redhat", "red hat"),
    "rocky": ("rocky linux", "rockylinux", "almalinux"),
    "alpine": ("alpine",),
}

_SECURITY_TOOLS: dict[str, tuple[str, ...]] = {
    "trivy": ("trivy", "scan vulnérabilités", "vulnerability scanner"),
    "kube_bench": ("kube-bench", "kubebench", "cis benchmark"),
    "kyverno": ("kyverno", "policy engine", "admission controller"),
    "opa": ("opa", "open policy agent", "gatekeeper"),
    "falco": ("falco", "runtime security", "détection d'intrusion"),
    "sops": ("sops", "secrets encryption", "chiffrement des secrets"),
    "cosign": ("cosign", "image signing", "signature des images"),
    "cert_manager": ("cert-manager", "certbot", "let's encrypt", "letsencrypt", "ssl", "tls", "certificat"),
    "fail2ban": ("fail2ban",),
}

_ENVIRONMENTS: dict[str, tuple[str, ...]] = {
    "production": ("production", "prod", "live"),
    "staging": ("staging", "preprod", "pré-production", "pre-production"),
    "development": ("development", "dev", "développement"),
    "testing": ("testing", "qa", "recette"),
}

_ACTIONS: dict[str, tuple[str, ...]] = {
    "install": ("installer", "installe", "install", "installation", "mettre en place"),
    "configure": ("configurer", "configure", "configuration", "paramétrer", "setup"),
    "deploy": ("déployer", "déploie", "deploy", "déploiement", "rollout"),
    "update": ("mettre à jour", "update", "upgrade", "migrer", "migration"),
    "backup": ("sauvegarder", "backup", "sauvegarde", "archiver"),
    "restore": ("restaurer", "restore", "récupérer", "recover"),
    "scale": ("scaler", "scale", "redimensionner", "autoscale"),
    "monitor": ("monitorer", "monitor", "superviser", "surveiller"),
    "secure": ("sécuriser", "secure", "protéger", "durcir", "hardening"),
    "audit": ("auditer", "audit", "scanner", "analyser"),
    "create": ("créer", "create", "ajouter", "add"),
    "delete": ("supprimer", "delete", "remove", "retirer"),
}

# Declaration order is output order
_VOCABULARY: tuple[tuple[EntityType, dict[str, tuple[str, ...]]], ...] = (
    (EntityType.SERVICE, _SERVICES),
    (EntityType.INFRASTRUCTURE, _SYSTEM_MANAGEMENT),
    (EntityType.PLATFORM, _PLATFORMS),
    (EntityType.SECURITY, _SECURITY_TOOLS),
    (EntityType.ENVIRONMENT, _ENVIRONMENTS),
    (EntityType.ACTION, _ACTIONS),
)


def _compile_vocabulary() -> tuple[
    tuple[EntityType, str, tuple[tuple[str, str], ...]], ...
]:
    """Pre-normalize variants: (type, canonical, ((normalized, raw), ...))."""
    compiled: list[tuple[EntityType, str, tuple[tuple[str, str], ...]]] = []
    for entity_type, group in _VOCABULARY:
        for canonical, variants in group.items():
            compiled.append((
                entity_type,
                canonical,
                tuple((normalize_term(v), v) for v in variants),
            ))
    return tuple(compiled)


_COMPILED = _compile_vocabulary()


def canonical_names(entity_type: EntityType | None = None) -> list[str]:
    """Canonical names known to the extractor, in declaration order."""
    return [
        canonical
        for etype, canonical, _ in _COMPILED
        if entity_type is None or etype == entity_type
    ]


def extract_entities(text: str | NormalizedText) -> list[Entity]:
    """Return the typed entities mentioned in ``text``.

    Deduplicated by (type, value); first matching variant wins.
    """
    normalized = text if isinstance(text, NormalizedText) else normalize(text)
    if normalized.is_blank:
        return []

    words = normalized.words
    entities: list[Entity] = []
    seen: set[tuple[str, str]] = set()

    for entity_type, canonical, variants in _COMPILED:
        key = (entity_type.value, canonical)
        if key in seen:
            continue
        for variant, surface in variants:
            if contains_term(normalized.text, variant, words):
                entities.append(
                    Entity(
                        type=entity_type,
                        value=canonical,
                        matched_text=surface,
                    )
                )
                seen.add(key)
                break

    return entities


def entities_of_type(
    entities: list[Entity], entity_type: EntityType
) -> list[str]:
    """Values of one entity type, in extraction order."""
    return [e.value for e in entities if e.type == entity_type]


def group_entities(entities: list[Entity]) -> dict[str, list[str]]:
    """Group entity values by type for summaries."""
    grouped: dict[str, list[str]] = {}
    for entity in entities:
        grouped.setdefault(entity.type.value, []).append(entity.value)
    return grouped
