from __future__ import annotations

from typing import Protocol, runtime_checkable

from agenda.models.tasks import Task


@runtime_checkable
class TaskCatalog(Protocol):
    def get(self, task_id: str) -> Task | None: ...


__all__ = ["TaskCatalog"]
