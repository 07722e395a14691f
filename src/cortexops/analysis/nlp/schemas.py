"""Frozen value objects produced by prompt analysis."""

from __future__ import annotations

from dataclasses import dataclass, field

from cortexops.constants import EntityType


@dataclass(frozen=True)
class Entity:
    """A typed, canonicalized concept detected in a prompt."""

    type: EntityType
    value: str
    matched_text: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.type, self.value)


@dataclass(frozen=True)
class KeywordRule:
    """Weighted keyword list scored by ``score_keywords``.

    Used for intents and for the service recipes of the basic
    conventional-host playbook.
    """

    keywords: tuple[str, ...]
    weight: float
    category: str = ""
    related: tuple[str, ...] = ()


@dataclass(frozen=True)
class Intent:
    """Dominant and secondary intents of a prompt.

    INVARIANT: ``primary`` never appears in ``secondary`` and
    ``secondary`` holds at most three names.
    """

    primary: str
    secondary: tuple[str, ...]
    confidence: float  # 0.0 to 1.0
    scores: dict[str, float] = field(
        default_factory=lambda: dict[str, float](),
        compare=False,
    )
