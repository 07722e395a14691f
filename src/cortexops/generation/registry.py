"""Template registry.

Templates are capabilities: each ``TemplateSpec`` declares the
deployment context and tier it serves and the entity types it needs.
Selection is a dictionary lookup keyed on ``(context, tier)``, with a
tier-independent ``(context, None)`` entry as the fallback.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cortexops.analysis.nlp.schemas import Entity
from cortexops.constants import ComplexityTier, DeploymentContext, EntityType
from cortexops.generation import templates
from cortexops.generation.params import TemplateParams

RenderFn = Callable[[TemplateParams], str]

type RegistryKey = tuple[DeploymentContext, ComplexityTier | None]


@dataclass(frozen=True)
class TemplateSpec:
    name: str
    context: DeploymentContext
    tier: ComplexityTier | None
    render: RenderFn
    required_entities: frozenset[EntityType] = frozenset()
    fallback: str | None = None
    # False for specs reached only by name, e.g. as a fallback
    routable: bool = True

    @property
    def key(self) -> RegistryKey:
        return (self.context, self.tier)

    def accepts(self, entities: Iterable[Entity]) -> bool:
        present = {e.type for e in entities}
        return self.required_entities <= present


class TemplateRegistry:
    """Name- and key-indexed collection of template specs."""

    def __init__(self) -> None:
        self._by_key: dict[RegistryKey, TemplateSpec] = {}
        self._by_name: dict[str, TemplateSpec] = {}

    def register(self, spec: TemplateSpec) -> None:
        if spec.name in self._by_name:
            raise ValueError(f"Template already registered: {spec.name}")
        if spec.routable:
            if spec.key in self._by_key:
                raise ValueError(
                    f"Template key already registered: "
                    f"{spec.context}/{spec.tier or '*'}"
                )
            self._by_key[spec.key] = spec
        self._by_name[spec.name] = spec

    def get(self, name: str) -> TemplateSpec:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown template: {name}") from None

    def lookup(
        self,
        context: DeploymentContext,
        tier: ComplexityTier,
        entities: Iterable[Entity] = (),
    ) -> TemplateSpec:
        """Template for ``(context, tier)``.

        Falls back to the context-wide entry, and from a spec whose
        required entities are absent to its declared fallback.
        """
        spec = self._by_key.get((context, tier)) or self._by_key.get(
            (context, None)
        )
        if spec is None:
            raise LookupError(f"No template for {context}/{tier}")

        entities = list(entities)
        seen: set[str] = set()
        while not spec.accepts(entities):
            if spec.fallback is None or spec.name in seen:
                raise LookupError(
                    f"Template {spec.name} needs "
                    f"{sorted(spec.required_entities)}"
                )
            seen.add(spec.name)
            spec = self.get(spec.fallback)
        return spec

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name


def default_registry() -> TemplateRegistry:
    registry = TemplateRegistry()
    for spec in (
        TemplateSpec(
            name="classic-linux-basic",
            context=DeploymentContext.CLASSIC_LINUX,
            tier=ComplexityTier.BASIC,
            render=templates.render_basic,
            required_entities=frozenset({EntityType.SERVICE}),
            fallback="generic-host",
        ),
        TemplateSpec(
            name="classic-linux-roles",
            context=DeploymentContext.CLASSIC_LINUX,
            tier=None,
            render=templates.render_role_based,
        ),
        TemplateSpec(
            name="generic-host",
            context=DeploymentContext.CLASSIC_LINUX,
            tier=ComplexityTier.BASIC,
            render=templates.render_generic_host,
            routable=False,
        ),
        TemplateSpec(
            name="container-simple",
            context=DeploymentContext.CONTAINER_SIMPLE,
            tier=None,
            render=templates.render_container_simple,
        ),
        TemplateSpec(
            name="kubernetes",
            context=DeploymentContext.KUBERNETES,
            tier=None,
            render=templates.render_kubernetes,
        ),
        TemplateSpec(
            name="cloud-provisioning",
            context=DeploymentContext.CLOUD_PROVISIONING,
            tier=None,
            render=templates.render_cloud_provisioning,
        ),
        TemplateSpec(
            name="hybrid",
            context=DeploymentContext.HYBRID,
            tier=None,
            render=templates.render_hybrid,
        ),
        TemplateSpec(
            name="serverless",
            context=DeploymentContext.SERVERLESS,
            tier=None,
            render=templates.render_serverless,
        ),
    ):
        registry.register(spec)
    return registry
