from __future__ import annotations

from typing import Protocol, runtime_checkable

from agenda.models.conversation import ConversationState
from agenda.models.effects import Activation


@runtime_checkable
class ActionExecutor(Protocol):
    async def execute(self, activation: Activation, state: ConversationState) -> bool:
        """Run the activation's effect. Returns True when the priority completed."""
        ...


__all__ = ["ActionExecutor"]
