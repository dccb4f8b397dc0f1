"""Effect binding for the priority the selector picked."""

from __future__ import annotations

import logging
from collections.abc import Collection

from agenda.errors import TaskUnavailableError
from agenda.models.effects import Activation, Effect, RequestData, RunInline, RunTask
from agenda.models.priorities import Priority, TaskExecution
from agenda.protocols.tasks import TaskCatalog

logger = logging.getLogger(__name__)


class ExecutionBinder:
    """Turn a selected priority into the single effect for this turn.

    Missing data always wins: nothing runs until every required field is
    known. Otherwise the linked task runs, or else the inline criteria and
    actions. The binder holds no per-conversation state.
    """

    def __init__(self, task_catalog: TaskCatalog | None = None) -> None:
        self._task_catalog = task_catalog

    def resolve_effect(self, priority: Priority, missing_data: Collection[str]) -> Effect:
        if missing_data:
            return RequestData(priority_id=priority.id, fields=frozenset(missing_data))

        execution = priority.execution
        if isinstance(execution, TaskExecution):
            self._check_task(execution.task_id)
            return RunTask(
                priority_id=priority.id,
                task_id=execution.task_id,
                actions=[action.model_copy(deep=True) for action in priority.actions],
            )

        effect = RunInline(
            priority_id=priority.id,
            completion_criteria=execution.completion_criteria,
            actions=[action.model_copy(deep=True) for action in priority.actions],
        )
        if effect.is_empty:
            logger.debug("Priority %s has no effect beyond gathering data", priority.id)
        return effect

    def bind(self, priority: Priority, missing_data: Collection[str]) -> Activation:
        return Activation(
            priority=priority,
            missing_data=frozenset(missing_data),
            effect=self.resolve_effect(priority, missing_data),
        )

    def _check_task(self, task_id: str) -> None:
        if self._task_catalog is None:
            return
        task = self._task_catalog.get(task_id)
        if task is None:
            raise TaskUnavailableError(task_id)
        if not task.enabled:
            raise TaskUnavailableError(task_id, "disabled")


__all__ = ["ExecutionBinder"]
