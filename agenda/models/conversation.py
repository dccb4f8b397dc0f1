from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field


def has_value(value: object) -> bool:
    """A field counts as known once it holds something other than null/empty."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return bool(value)
    return True


class ConversationState(BaseModel):
    """Mutable per-conversation data visible to guards and the resolver."""

    conversation_id: str
    agent_id: str | None = None
    collected_data: dict[str, Any] = Field(default_factory=dict)
    turn: int = 0

    def merge(self, data: Mapping[str, Any]) -> None:
        self.collected_data.update(data)

    def known_fields(self) -> frozenset[str]:
        return frozenset(key for key, value in self.collected_data.items() if has_value(value))


__all__ = ["ConversationState", "has_value"]
