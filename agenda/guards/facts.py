"""Derived boolean facts computed from collected conversation data."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from agenda.core.cycles import find_any_cycle
from agenda.errors import FactDefinitionError
from agenda.models.conversation import has_value
from agenda.models.facts import FactDefinition


def validate_fact_definitions(definitions: Sequence[FactDefinition]) -> list[str]:
    """Return every problem across the set; an empty list means valid."""
    errors: list[str] = []
    names: set[str] = set()
    for definition in definitions:
        if definition.name in names:
            errors.append(f'duplicate fact name: "{definition.name}"')
        names.add(definition.name)

    graph: dict[str, set[str]] = {}
    for definition in definitions:
        if definition.type != "composite":
            continue
        graph[definition.name] = {condition.fact for condition in definition.conditions}
        for condition in definition.conditions:
            if condition.fact not in names:
                errors.append(
                    f'composite fact "{definition.name}" references undefined fact: "{condition.fact}"'
                )

    cycle = find_any_cycle(graph)
    if cycle is not None:
        errors.append(f"circular fact dependency: {' -> '.join(cycle)}")
    return errors


class FactDeriver:
    def __init__(self, definitions: Iterable[FactDefinition] = ()) -> None:
        materialized = list(definitions)
        errors = validate_fact_definitions(materialized)
        if errors:
            raise FactDefinitionError(errors)
        self._definitions = {definition.name: definition for definition in materialized}

    @property
    def names(self) -> list[str]:
        return list(self._definitions)

    def derive(self, collected: Mapping[str, object]) -> dict[str, bool]:
        facts: dict[str, bool] = {}
        for name in self._definitions:
            self._resolve(name, collected, facts)
        return facts

    def _resolve(self, name: str, collected: Mapping[str, object], facts: dict[str, bool]) -> bool:
        if name in facts:
            return facts[name]
        definition = self._definitions[name]
        if definition.type == "exists":
            value = has_value(collected.get(definition.field or ""))
        elif definition.type == "not_exists":
            value = not has_value(collected.get(definition.field or ""))
        elif definition.type == "equals":
            value = collected.get(definition.field or "") == definition.value
        elif definition.type == "any_exists":
            value = any(has_value(collected.get(field)) for field in definition.fields)
        elif definition.type == "all_exists":
            value = all(has_value(collected.get(field)) for field in definition.fields)
        else:
            results = [
                self._resolve(condition.fact, collected, facts)
                for condition in definition.conditions
            ]
            value = all(results) if definition.logic == "all" else any(results)
        facts[name] = value
        return value


__all__ = ["FactDeriver", "validate_fact_definitions"]
