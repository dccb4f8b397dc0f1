from __future__ import annotations

from typing import Protocol, runtime_checkable

from agenda.models.priorities import Priority


@runtime_checkable
class PriorityStore(Protocol):
    async def load(self, agent_id: str) -> list[Priority]: ...

    async def save(self, agent_id: str, priorities: list[Priority]) -> None: ...


__all__ = ["PriorityStore"]
