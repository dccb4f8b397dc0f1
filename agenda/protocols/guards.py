from __future__ import annotations

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from agenda.models.conversation import ConversationState
from agenda.models.guards import GuardExpression


@runtime_checkable
class GuardEvaluator(Protocol):
    def evaluate(
        self,
        guard: GuardExpression,
        state: ConversationState,
    ) -> bool | Awaitable[bool]: ...


__all__ = ["GuardEvaluator"]
