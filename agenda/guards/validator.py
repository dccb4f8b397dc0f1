"""Static checks and plain-language rendering for guard expressions."""

from __future__ import annotations

from collections.abc import Collection, Mapping

from agenda.models.guards import GuardExpression

ALWAYS_ELIGIBLE = "always eligible"


def validate_guard(
    guard: GuardExpression | None,
    available_facts: Collection[str],
    path: str = "root",
) -> list[str]:
    """Report fact keys the guard references that are not available."""
    if guard is None:
        return []
    errors: list[str] = []
    for operator in ("eq", "neq"):
        pair = getattr(guard, operator)
        if pair is not None and pair[0] not in available_facts:
            errors.append(f'{path}.{operator}: unknown fact "{pair[0]}"')
    if guard.exists is not None and guard.exists not in available_facts:
        errors.append(f'{path}.exists: unknown fact "{guard.exists}"')
    for operator, children in (("all", guard.all_), ("any", guard.any_)):
        for index, child in enumerate(children or []):
            errors.extend(validate_guard(child, available_facts, f"{path}.{operator}[{index}]"))
    if guard.not_ is not None:
        errors.extend(validate_guard(guard.not_, available_facts, f"{path}.not"))
    return errors


def used_fact_keys(guard: GuardExpression | None) -> list[str]:
    if guard is None:
        return []
    keys: list[str] = []

    def visit(node: GuardExpression) -> None:
        for pair in (node.eq, node.neq):
            if pair is not None and pair[0] not in keys:
                keys.append(pair[0])
        if node.exists is not None and node.exists not in keys:
            keys.append(node.exists)
        for child in [*(node.all_ or []), *(node.any_ or [])]:
            visit(child)
        if node.not_ is not None:
            visit(node.not_)

    visit(guard)
    return keys


def describe_guard(
    guard: GuardExpression | None,
    labels: Mapping[str, str] | None = None,
) -> str:
    """Render a guard as an English sentence, using ``labels`` for fact names."""
    if guard is None or guard.is_empty:
        return ALWAYS_ELIGIBLE
    return _describe(guard, 0, labels or {})


def _describe(node: GuardExpression, level: int, labels: Mapping[str, str]) -> str:
    if node.all_ is not None or node.any_ is not None:
        joiner = " and " if node.all_ is not None else " or "
        parts = [_describe(child, level + 1, labels) for child in (node.all_ or node.any_ or [])]
        sentence = joiner.join(parts)
        return sentence if level == 0 else f"({sentence})"
    if node.not_ is not None:
        return f"not {_describe(node.not_, level + 1, labels)}"
    if node.eq is not None:
        key, value = node.eq
        return f"{labels.get(key, key)} is {_format_value(value)}"
    if node.neq is not None:
        key, value = node.neq
        return f"{labels.get(key, key)} is not {_format_value(value)}"
    if node.exists is not None:
        return f"{labels.get(node.exists, node.exists)} is known"
    return "unknown condition"


def _format_value(value: object) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


__all__ = ["ALWAYS_ELIGIBLE", "describe_guard", "used_fact_keys", "validate_guard"]
