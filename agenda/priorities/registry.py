"""In-memory priority registry for one agent.

Mutations are copy-on-write: each edit builds a new id → Priority mapping,
validates it as a whole and only then swaps it in. Readers that took a
``snapshot()`` keep seeing the registry exactly as it was when they read it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from agenda.errors import (
    CyclicDependencyError,
    DanglingDependencyError,
    DuplicateIdError,
    InvalidPriorityError,
    InvalidWeightError,
    MutuallyExclusiveFieldError,
    NotFoundError,
)
from agenda.models.priorities import MAX_WEIGHT, MIN_WEIGHT, Priority, PriorityActionType
from agenda.priorities.graph import DependencyGraph
from agenda.protocols.tasks import TaskCatalog

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "weight",
        "triggers",
        "required_data",
        "depends_on",
        "guard",
        "task_id",
        "completion_criteria",
        "actions",
        "enabled",
        "execute_once",
        "metadata",
    }
)


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Updated priority plus any fields the update cleared as a side effect."""

    priority: Priority
    cleared_fields: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RemoveResult:
    removed: Priority
    cascaded: tuple[str, ...] = ()


def order_by_weight(priorities: Iterable[Priority]) -> list[Priority]:
    """Heaviest first. The sort is stable, so equal weights keep input order."""
    return sorted(priorities, key=lambda priority: -priority.weight)


def _check_weight(weight: object) -> None:
    if isinstance(weight, bool) or not isinstance(weight, int):
        raise InvalidWeightError(weight)
    if not MIN_WEIGHT <= weight <= MAX_WEIGHT:
        raise InvalidWeightError(weight)


def build_priority(data: Mapping[str, Any]) -> Priority:
    """Validate raw fields into a Priority, mapping failures onto the error taxonomy."""
    priority_id = data.get("id")
    if "weight" in data:
        _check_weight(data["weight"])
    depends_on = data.get("depends_on") or []
    if priority_id is not None and priority_id in depends_on:
        raise CyclicDependencyError([priority_id, priority_id])
    if data.get("task_id") and data.get("completion_criteria"):
        raise MutuallyExclusiveFieldError(str(priority_id))
    try:
        return Priority.model_validate(dict(data))
    except ValidationError as exc:
        raise InvalidPriorityError(f"invalid priority {priority_id}: {exc}") from exc


class PriorityRegistry:
    """Validated, unordered collection of one agent's priorities.

    ``list()`` returns insertion order; use ``ordered()`` or
    ``order_by_weight`` for the weight view, which is always recomputed.
    """

    def __init__(
        self,
        priorities: Iterable[Priority] = (),
        *,
        agent_id: str | None = None,
        task_catalog: TaskCatalog | None = None,
    ) -> None:
        self.agent_id = agent_id
        self._task_catalog = task_catalog
        self._lock = threading.Lock()
        self._priorities: dict[str, Priority] = {}
        initial = list(priorities)
        if initial:
            self.replace_all(initial)

    def __len__(self) -> int:
        return len(self._priorities)

    def __contains__(self, priority_id: object) -> bool:
        return priority_id in self._priorities

    def get(self, priority_id: str) -> Priority:
        current = self._priorities
        if priority_id not in current:
            raise NotFoundError(priority_id)
        return current[priority_id].model_copy(deep=True)

    def list(self) -> list[Priority]:
        return [priority.model_copy(deep=True) for priority in self._priorities.values()]

    def snapshot(self) -> tuple[Priority, ...]:
        """Consistent point-in-time copy for one evaluation turn."""
        return tuple(self.list())

    def ordered(self) -> list[Priority]:
        return order_by_weight(self.list())

    def graph(self) -> DependencyGraph:
        return DependencyGraph.from_priorities(self._priorities.values())

    def add(self, priority: Priority) -> Priority:
        candidate = build_priority(priority.model_dump())
        with self._lock:
            current = self._priorities
            if candidate.id in current:
                raise DuplicateIdError(candidate.id)
            self._check_references(candidate)
            self._check_dependencies(current, candidate)
            updated = dict(current)
            updated[candidate.id] = candidate
            self._priorities = updated
        logger.info("Added priority %s (weight=%d)", candidate.id, candidate.weight)
        return candidate.model_copy(deep=True)

    def create(self, name: str, **fields: Any) -> Priority:
        """Create a priority whose id is slugified from ``name`` and add it."""
        return self.add(Priority.create(name, **fields))

    def update(self, priority_id: str, changes: Mapping[str, Any]) -> UpdateResult:
        """Apply a partial update.

        Setting ``task_id`` clears ``completion_criteria``; the cleared field
        is reported in ``UpdateResult.cleared_fields``.
        """
        if "id" in changes and changes["id"] != priority_id:
            raise InvalidPriorityError(f"priority {priority_id}: id is immutable")
        unknown = sorted(set(changes) - UPDATABLE_FIELDS - {"id"})
        if unknown:
            raise InvalidPriorityError(
                f"priority {priority_id}: unknown fields {', '.join(unknown)}"
            )

        with self._lock:
            current = self._priorities
            if priority_id not in current:
                raise NotFoundError(priority_id)
            existing = current[priority_id]
            data = existing.model_dump()
            data.update({key: value for key, value in changes.items() if key != "id"})

            cleared: tuple[str, ...] = ()
            task_id = changes.get("task_id")
            if isinstance(task_id, str):
                task_id = task_id.strip() or None
            if "task_id" in changes:
                data["task_id"] = task_id
            if task_id:
                if changes.get("completion_criteria"):
                    raise MutuallyExclusiveFieldError(priority_id)
                if existing.completion_criteria:
                    cleared = ("completion_criteria",)
                data["completion_criteria"] = ""
            elif changes.get("completion_criteria") and data.get("task_id"):
                raise MutuallyExclusiveFieldError(priority_id)

            candidate = build_priority(data)
            self._check_references(candidate)
            if "depends_on" in changes:
                self._check_dependencies(current, candidate)
            updated = dict(current)
            updated[priority_id] = candidate
            self._priorities = updated

        if cleared:
            logger.info(
                "Priority %s linked to task %s; cleared %s",
                priority_id,
                candidate.task_id,
                ", ".join(cleared),
            )
        logger.debug("Updated priority %s fields=%s", priority_id, sorted(changes))
        return UpdateResult(priority=candidate.model_copy(deep=True), cleared_fields=cleared)

    def remove(self, priority_id: str) -> RemoveResult:
        """Delete a priority and strip it from every other ``depends_on``."""
        with self._lock:
            current = self._priorities
            if priority_id not in current:
                raise NotFoundError(priority_id)
            removed = current[priority_id]
            updated: dict[str, Priority] = {}
            cascaded: list[str] = []
            for other_id, other in current.items():
                if other_id == priority_id:
                    continue
                if priority_id in other.depends_on:
                    other = other.model_copy(
                        update={"depends_on": [dep for dep in other.depends_on if dep != priority_id]},
                        deep=True,
                    )
                    cascaded.append(other_id)
                updated[other_id] = other
            self._priorities = updated

        logger.info("Removed priority %s (cascaded to %s)", priority_id, cascaded or "none")
        return RemoveResult(removed=removed, cascaded=tuple(cascaded))

    def replace_all(self, priorities: Iterable[Priority]) -> None:
        """Swap in a whole new set, or leave the registry untouched on error."""
        validated = self.validate_set(priorities, task_catalog=self._task_catalog)
        with self._lock:
            self._priorities = {priority.id: priority for priority in validated}
        logger.debug("Registry %s now holds %d priorities", self.agent_id, len(validated))

    @staticmethod
    def validate_set(
        priorities: Iterable[Priority],
        *,
        task_catalog: TaskCatalog | None = None,
    ) -> list[Priority]:
        validated: list[Priority] = []
        seen: set[str] = set()
        for priority in priorities:
            candidate = build_priority(priority.model_dump())
            if candidate.id in seen:
                raise DuplicateIdError(candidate.id)
            seen.add(candidate.id)
            validated.append(candidate)

        graph = DependencyGraph.from_priorities(validated)
        dangling = graph.dangling()
        if dangling:
            source = next(iter(dangling))
            raise DanglingDependencyError(source, dangling[source])
        cycle = graph.find_cycle()
        if cycle is not None:
            raise CyclicDependencyError(cycle)
        if task_catalog is not None:
            for candidate in validated:
                _check_task_references(candidate, task_catalog)
        return validated

    def _check_references(self, candidate: Priority) -> None:
        if self._task_catalog is not None:
            _check_task_references(candidate, self._task_catalog)

    @staticmethod
    def _check_dependencies(current: Mapping[str, Priority], candidate: Priority) -> None:
        missing = [dep for dep in candidate.depends_on if dep not in current]
        if missing:
            raise DanglingDependencyError(candidate.id, missing)
        DependencyGraph.from_priorities(current.values()).ensure_acyclic(
            candidate.id, candidate.depends_on
        )


def _check_task_references(priority: Priority, catalog: TaskCatalog) -> None:
    referenced: Sequence[str] = [
        *([priority.task_id] if priority.task_id else []),
        *(
            str(action.params["task_id"])
            for action in priority.actions
            if action.type == PriorityActionType.execute_task
        ),
    ]
    for task_id in referenced:
        if catalog.get(task_id) is None:
            raise InvalidPriorityError(f"priority {priority.id}: unknown task {task_id}")


__all__ = [
    "RemoveResult",
    "UPDATABLE_FIELDS",
    "PriorityRegistry",
    "UpdateResult",
    "build_priority",
    "order_by_weight",
]
