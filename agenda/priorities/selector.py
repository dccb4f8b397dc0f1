"""Priority selection: pick at most one priority to activate per turn.

The filter order is fixed:

  1. enabled, triggered this turn, and not an already-used ``execute_once``
  2. every ``depends_on`` id completed in this conversation
  3. a linked task (if any) exists and is enabled
  4. guard (if any) evaluates true

Survivors are ordered by weight (heaviest first, ties by registry order)
and the head is activated. Missing required data never excludes a
priority here; the binder turns it into a data request instead.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Collection, Sequence

from agenda.errors import CapabilityError, GuardEvaluationError
from agenda.guards.evaluator import FactGuardEvaluator
from agenda.models.conversation import ConversationState
from agenda.models.priorities import Priority
from agenda.priorities.registry import order_by_weight
from agenda.priorities.tracker import RunOnceTracker
from agenda.protocols.guards import GuardEvaluator
from agenda.protocols.tasks import TaskCatalog

logger = logging.getLogger(__name__)


class PrioritySelector:
    def __init__(
        self,
        guard_evaluator: GuardEvaluator | None = None,
        task_catalog: TaskCatalog | None = None,
    ) -> None:
        self._guard_evaluator = guard_evaluator or FactGuardEvaluator()
        self._task_catalog = task_catalog

    def select_next(
        self,
        priorities: Sequence[Priority],
        *,
        triggered: Collection[str],
        tracker: RunOnceTracker,
        state: ConversationState,
    ) -> Priority | None:
        candidates = self._eligible(priorities, triggered, tracker)
        passed: list[Priority] = []
        for priority in candidates:
            if priority.guard is None:
                passed.append(priority)
                continue
            outcome = self._call_guard(priority, state)
            if inspect.isawaitable(outcome):
                if inspect.iscoroutine(outcome):
                    outcome.close()
                raise GuardEvaluationError(
                    "guard evaluator is asynchronous; use select_next_async"
                )
            if self._accept_guard(priority, outcome):
                passed.append(priority)
        return self._pick(passed)

    async def select_next_async(
        self,
        priorities: Sequence[Priority],
        *,
        triggered: Collection[str],
        tracker: RunOnceTracker,
        state: ConversationState,
    ) -> Priority | None:
        candidates = self._eligible(priorities, triggered, tracker)
        passed: list[Priority] = []
        for priority in candidates:
            if priority.guard is None:
                passed.append(priority)
                continue
            outcome = self._call_guard(priority, state)
            if inspect.isawaitable(outcome):
                try:
                    outcome = await outcome
                except CapabilityError:
                    raise
                except Exception as exc:
                    raise GuardEvaluationError(
                        f"guard evaluation failed for {priority.id}: {exc}"
                    ) from exc
            if self._accept_guard(priority, outcome):
                passed.append(priority)
        return self._pick(passed)

    def _eligible(
        self,
        priorities: Sequence[Priority],
        triggered: Collection[str],
        tracker: RunOnceTracker,
    ) -> list[Priority]:
        completed = tracker.completed
        eligible: list[Priority] = []
        for priority in priorities:
            if not priority.enabled or priority.id not in triggered:
                continue
            if priority.execute_once and tracker.is_used(priority.id):
                logger.debug("Skipping %s: execute_once already used", priority.id)
                continue
            blocking = [dep for dep in priority.depends_on if dep not in completed]
            if blocking:
                logger.debug("Skipping %s: waiting on %s", priority.id, ", ".join(blocking))
                continue
            unavailable = self._unavailable_task(priority)
            if unavailable:
                logger.debug("Skipping %s: task %s", priority.id, unavailable)
                continue
            eligible.append(priority)
        return eligible

    def _unavailable_task(self, priority: Priority) -> str | None:
        if self._task_catalog is None or not priority.task_id:
            return None
        task = self._task_catalog.get(priority.task_id)
        if task is None:
            return f"{priority.task_id} not found"
        if not task.enabled:
            return f"{priority.task_id} disabled"
        return None

    def _call_guard(self, priority: Priority, state: ConversationState) -> object:
        guard = priority.guard
        if guard is None:
            return True
        try:
            return self._guard_evaluator.evaluate(guard, state)
        except CapabilityError:
            raise
        except Exception as exc:
            raise GuardEvaluationError(
                f"guard evaluation failed for {priority.id}: {exc}"
            ) from exc

    def _accept_guard(self, priority: Priority, outcome: object) -> bool:
        if outcome:
            return True
        logger.debug("Skipping %s: guard evaluated %r", priority.id, outcome)
        return False

    def _pick(self, candidates: list[Priority]) -> Priority | None:
        if not candidates:
            return None
        return order_by_weight(candidates)[0]


__all__ = ["PrioritySelector"]
