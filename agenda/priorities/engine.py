"""Turn loop: trigger matching, selection, binding and completion tracking.

A ``PriorityEngine`` holds the agent-wide pieces (registry, capabilities,
selector, binder). Each conversation gets its own ``ConversationSession``
with its own state and run-once tracker; nothing mutable is shared between
sessions. Turns of one session run strictly one after another.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from agenda.core.logging import correlation_scope
from agenda.errors import ActionExecutionError, CapabilityError, TriggerMatchError
from agenda.guards.evaluator import FactGuardEvaluator
from agenda.guards.facts import FactDeriver
from agenda.models.conversation import ConversationState
from agenda.models.effects import Activation, RequestData, RunInline
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import Priority
from agenda.priorities.binder import ExecutionBinder
from agenda.priorities.catalog import InMemoryTaskCatalog
from agenda.priorities.registry import PriorityRegistry
from agenda.priorities.resolver import missing_data
from agenda.priorities.selector import PrioritySelector
from agenda.priorities.tracker import RunOnceTracker
from agenda.protocols.actions import ActionExecutor
from agenda.protocols.guards import GuardEvaluator
from agenda.protocols.tasks import TaskCatalog
from agenda.protocols.triggers import TriggerMatcher
from agenda.triggers.matcher import PhraseTriggerMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TurnOutcome:
    turn: int
    triggered: frozenset[str]
    activation: Activation | None = None
    completed: bool = False

    @property
    def activated(self) -> bool:
        return self.activation is not None


class ConversationSession:
    def __init__(self, engine: PriorityEngine, conversation_id: str) -> None:
        self._engine = engine
        self.state = ConversationState(
            conversation_id=conversation_id,
            agent_id=engine.registry.agent_id,
        )
        self.tracker = RunOnceTracker(conversation_id)
        self._lock = asyncio.Lock()

    @property
    def conversation_id(self) -> str:
        return self.state.conversation_id

    async def process_turn(self, text: str, data: Mapping[str, Any] | None = None) -> TurnOutcome:
        async with self._lock:
            return await self._engine.run_turn(self, text, data)

    def complete(self, priority_id: str) -> None:
        """Record that an activation's effect finished outside the engine."""
        self.tracker.mark_completed(priority_id)


class PriorityEngine:
    def __init__(
        self,
        registry: PriorityRegistry,
        *,
        trigger_matcher: TriggerMatcher | None = None,
        guard_evaluator: GuardEvaluator | None = None,
        task_catalog: TaskCatalog | None = None,
        action_executor: ActionExecutor | None = None,
    ) -> None:
        self.registry = registry
        self._matcher = trigger_matcher or PhraseTriggerMatcher()
        self._selector = PrioritySelector(guard_evaluator, task_catalog)
        self._binder = ExecutionBinder(task_catalog)
        self._executor = action_executor

    @classmethod
    def from_orchestration(
        cls,
        document: AgentOrchestration,
        *,
        trigger_matcher: TriggerMatcher | None = None,
        action_executor: ActionExecutor | None = None,
    ) -> PriorityEngine:
        """Wire registry, task catalog and fact-aware guards from one agent document."""
        catalog = InMemoryTaskCatalog(document.tasks)
        registry = PriorityRegistry(
            document.priorities,
            agent_id=document.agent_id,
            task_catalog=catalog,
        )
        return cls(
            registry,
            trigger_matcher=trigger_matcher,
            guard_evaluator=FactGuardEvaluator(FactDeriver(document.fact_definitions)),
            task_catalog=catalog,
            action_executor=action_executor,
        )

    def start_conversation(self, conversation_id: str | None = None) -> ConversationSession:
        return ConversationSession(self, conversation_id or str(uuid4()))

    async def run_turn(
        self,
        session: ConversationSession,
        text: str,
        data: Mapping[str, Any] | None = None,
    ) -> TurnOutcome:
        state = session.state
        state.turn += 1
        turn_id = f"{state.conversation_id}:{state.turn}"
        with correlation_scope(conversation_id=state.conversation_id, turn_id=turn_id):
            if data:
                state.merge(data)
            priorities = self.registry.snapshot()
            triggered = await self.triggered_ids(priorities, text)
            try:
                selected = await self._selector.select_next_async(
                    priorities,
                    triggered=triggered,
                    tracker=session.tracker,
                    state=state,
                )
            except CapabilityError:
                logger.error("Guard evaluation failed; no activation this turn", exc_info=True)
                raise

            if selected is None:
                logger.info("No activation (triggered=%s)", sorted(triggered) or "none")
                return TurnOutcome(turn=state.turn, triggered=triggered)

            with correlation_scope(priority_id=selected.id):
                activation = self._binder.bind(
                    selected,
                    missing_data(selected, state.known_fields()),
                )
                logger.info(
                    "Activated %s (weight=%d) effect=%s",
                    selected.id,
                    selected.weight,
                    activation.effect.kind,
                )
                completed = await self._dispatch(session, activation)
            return TurnOutcome(
                turn=state.turn,
                triggered=triggered,
                activation=activation,
                completed=completed,
            )

    async def triggered_ids(self, priorities: Sequence[Priority], text: str) -> frozenset[str]:
        triggered: set[str] = set()
        for priority in priorities:
            if not priority.enabled or not priority.triggers:
                continue
            try:
                outcome = self._matcher.match(text, priority.triggers)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:
                logger.error("Trigger matcher failed for %s", priority.id, exc_info=True)
                raise TriggerMatchError(f"trigger matching failed for {priority.id}: {exc}") from exc
            if outcome:
                triggered.add(priority.id)
        return frozenset(triggered)

    async def _dispatch(self, session: ConversationSession, activation: Activation) -> bool:
        effect = activation.effect
        if isinstance(effect, RunInline) and effect.is_empty:
            session.complete(activation.priority_id)
            return True
        if self._executor is None:
            return False
        try:
            finished = await self._executor.execute(activation, session.state)
        except Exception as exc:
            logger.error("Action executor failed for %s", activation.priority_id, exc_info=True)
            raise ActionExecutionError(
                f"executing {activation.priority_id} failed: {exc}"
            ) from exc
        if finished and not isinstance(effect, RequestData):
            session.complete(activation.priority_id)
            return True
        return False


__all__ = ["ConversationSession", "PriorityEngine", "TurnOutcome"]
