"""Route a classified prompt to a playbook template.

The deployment context, complexity tier and extracted entities select
a ``TemplateSpec`` from the registry; the service recipe of basic
conventional-host playbooks is picked by keyword scoring.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cortexops.analysis.deployment.complexity import should_include_feature
from cortexops.analysis.deployment.roles import detect_required_roles
from cortexops.analysis.deployment.schemas import ComplexityVerdict, ContextVerdict
from cortexops.analysis.nlp.intent import score_keywords
from cortexops.analysis.nlp.schemas import Entity, KeywordRule
from cortexops.constants import Environment, Feature
from cortexops.generation.params import TemplateParams, build_params
from cortexops.generation.registry import (
    TemplateRegistry,
    TemplateSpec,
    default_registry,
)

logger = logging.getLogger(__name__)

GENERIC_RECIPE = "generic"

# Declaration order breaks ties: plain nginx wins over nginx_ssl
RECIPE_RULES: dict[str, KeywordRule] = {
    "nginx": KeywordRule(keywords=("nginx",), weight=10, category="web"),
    "nginx_ssl": KeywordRule(
        keywords=(
            "nginx ssl", "ssl", "https", "tls", "certbot", "letsencrypt",
            "certificat", "certificate",
        ),
        weight=10,
        category="web",
    ),
    "postgresql": KeywordRule(
        keywords=("postgresql", "postgres", "psql"),
        weight=10,
        category="database",
    ),
    "mysql": KeywordRule(
        keywords=("mysql", "mariadb"), weight=10, category="database"
    ),
    "docker": KeywordRule(
        keywords=("docker", "conteneur", "container"),
        weight=9,
        category="container",
    ),
    "nodejs": KeywordRule(
        keywords=("nodejs", "node.js", "node", "npm", "express"),
        weight=9,
        category="runtime",
    ),
    "python": KeywordRule(
        keywords=("python", "django", "flask", "fastapi", "pip"),
        weight=9,
        category="runtime",
    ),
    "redis": KeywordRule(
        keywords=("redis", "cache"), weight=8, category="cache"
    ),
}


@dataclass(frozen=True)
class GeneratedPlaybook:
    template: str
    content: str
    params: TemplateParams


def select_recipe(prompt: str) -> str:
    """Best-scoring service recipe, ``generic`` when nothing matched."""
    ranked = score_keywords(prompt, RECIPE_RULES)
    if not ranked:
        return GENERIC_RECIPE
    return ranked[0][0]


def select_template(
    context: ContextVerdict,
    complexity: ComplexityVerdict,
    entities: list[Entity],
    registry: TemplateRegistry | None = None,
) -> TemplateSpec:
    registry = registry or default_registry()
    return registry.lookup(context.context, complexity.tier, entities)


def generate(
    context: ContextVerdict,
    complexity: ComplexityVerdict,
    entities: list[Entity],
    environment: Environment,
    *,
    prompt: str = "",
    registry: TemplateRegistry | None = None,
) -> GeneratedPlaybook:
    """Render the playbook for a classified prompt."""
    spec = select_template(context, complexity, entities, registry)
    features = frozenset(
        f for f in Feature if should_include_feature(complexity.tier, f)
    )
    params = build_params(
        prompt,
        environment=environment,
        tier=complexity.tier,
        recipe=select_recipe(prompt),
        roles=detect_required_roles(prompt),
        features=features,
        entities=entities,
    )
    content = spec.render(params)
    logger.info(
        "event=playbook_generated template=%s context=%s tier=%s recipe=%s",
        spec.name,
        context.context,
        complexity.tier,
        params.recipe,
    )
    return GeneratedPlaybook(template=spec.name, content=content, params=params)
