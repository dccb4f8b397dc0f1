"""Deterministic evaluator for the priority guard DSL."""

from __future__ import annotations

from collections.abc import Mapping

from agenda.guards.facts import FactDeriver
from agenda.models.conversation import ConversationState, has_value
from agenda.models.guards import GuardExpression


def evaluate_guard(guard: GuardExpression, facts: Mapping[str, object]) -> bool:
    if guard.is_empty:
        return True
    if guard.all_ is not None:
        return all(evaluate_guard(child, facts) for child in guard.all_)
    if guard.any_ is not None:
        return any(evaluate_guard(child, facts) for child in guard.any_)
    if guard.not_ is not None:
        return not evaluate_guard(guard.not_, facts)
    if guard.eq is not None:
        key, expected = guard.eq
        return facts.get(key) == expected
    if guard.neq is not None:
        key, expected = guard.neq
        return facts.get(key) != expected
    if guard.exists is not None:
        return has_value(facts.get(guard.exists))
    return False


class FactGuardEvaluator:
    """Guard evaluator over collected data plus derived facts.

    Derived facts shadow collected fields of the same name.
    """

    def __init__(self, deriver: FactDeriver | None = None) -> None:
        self._deriver = deriver or FactDeriver()

    def facts_for(self, state: ConversationState) -> dict[str, object]:
        facts: dict[str, object] = dict(state.collected_data)
        facts.update(self._deriver.derive(state.collected_data))
        return facts

    def evaluate(self, guard: GuardExpression, state: ConversationState) -> bool:
        return evaluate_guard(guard, self.facts_for(state))


__all__ = ["FactGuardEvaluator", "evaluate_guard"]
