"""In-memory task catalog built from an agent document."""

from __future__ import annotations

from collections.abc import Iterable

from agenda.models.tasks import Task


class InMemoryTaskCatalog:
    """Task lookup backed by the agent document's task list."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {}
        for task in tasks:
            self.add(task)

    def add(self, task: Task) -> None:
        if task.id in self._tasks:
            raise ValueError(f"duplicate task id: {task.id}")
        self._tasks[task.id] = task

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def list(self) -> list[Task]:
        return list(self._tasks.values())


__all__ = ["InMemoryTaskCatalog"]
