"""Exception taxonomy for priority authoring and evaluation."""

from __future__ import annotations

from collections.abc import Sequence


class AgendaError(Exception):
    """Base class for every error raised by agenda."""


class PriorityValidationError(AgendaError):
    """A mutation was rejected before it reached the registry."""


class DuplicateIdError(PriorityValidationError):
    def __init__(self, priority_id: str) -> None:
        super().__init__(f"priority id already exists: {priority_id}")
        self.priority_id = priority_id


class NotFoundError(AgendaError, KeyError):
    def __init__(self, priority_id: str) -> None:
        super().__init__(f"priority not found: {priority_id}")
        self.priority_id = priority_id

    def __str__(self) -> str:
        return str(self.args[0])


class CyclicDependencyError(PriorityValidationError):
    """Raised when a dependsOn edit would close a cycle.

    ``cycle`` lists the ids along the loop, starting and ending at the same id.
    """

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"dependency cycle: {' -> '.join(self.cycle)}")


class InvalidWeightError(PriorityValidationError):
    def __init__(self, weight: object) -> None:
        super().__init__(f"weight must be an integer in [1, 100], got {weight!r}")
        self.weight = weight


class DanglingDependencyError(PriorityValidationError):
    def __init__(self, priority_id: str, missing: Sequence[str]) -> None:
        self.priority_id = priority_id
        self.missing = sorted(missing)
        super().__init__(
            f"priority {priority_id} depends on unknown priorities: {', '.join(self.missing)}"
        )


class MutuallyExclusiveFieldError(PriorityValidationError):
    def __init__(self, priority_id: str) -> None:
        super().__init__(
            f"priority {priority_id}: task_id and completion_criteria cannot both be set"
        )
        self.priority_id = priority_id


class InvalidPriorityError(PriorityValidationError):
    """Field-level problem: unknown field, immutable id, malformed value."""


class TaskUnavailableError(AgendaError):
    def __init__(self, task_id: str, reason: str = "not found") -> None:
        super().__init__(f"task {task_id} is unavailable: {reason}")
        self.task_id = task_id
        self.reason = reason


class FactDefinitionError(AgendaError):
    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CapabilityError(AgendaError):
    """An external capability failed; the turn activates nothing."""


class TriggerMatchError(CapabilityError):
    pass


class GuardEvaluationError(CapabilityError):
    pass


class ActionExecutionError(CapabilityError):
    pass


class StoreError(AgendaError):
    pass


__all__ = [
    "ActionExecutionError",
    "AgendaError",
    "CapabilityError",
    "CyclicDependencyError",
    "DanglingDependencyError",
    "DuplicateIdError",
    "FactDefinitionError",
    "GuardEvaluationError",
    "InvalidPriorityError",
    "InvalidWeightError",
    "MutuallyExclusiveFieldError",
    "NotFoundError",
    "PriorityValidationError",
    "StoreError",
    "TaskUnavailableError",
    "TriggerMatchError",
]
