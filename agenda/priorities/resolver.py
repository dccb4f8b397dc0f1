"""Required-data resolution: which fields a priority still needs."""

from __future__ import annotations

from collections.abc import Collection

from agenda.models.priorities import Priority


def missing_data(priority: Priority, known_data: Collection[str]) -> frozenset[str]:
    """``required_data - known_data``. Callers treat the result as unordered."""
    return frozenset(priority.required_data).difference(known_data)


__all__ = ["missing_data"]
