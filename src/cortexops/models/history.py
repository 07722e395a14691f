"""Generated-playbook history record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class HistoryRecord:
    prompt: str
    content: str
    template: str | None = None
    context: str | None = None
    tier: str | None = None
    valid: bool = False
    id: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "prompt": self.prompt,
            "content": self.content,
            "template": self.template,
            "context": self.context,
            "tier": self.tier,
            "valid": self.valid,
            "created_at": self.created_at.isoformat(),
        }
