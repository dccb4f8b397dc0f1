"""Dependency graph over priority ``depends_on`` edges.

Edges point from a priority to the priorities it depends on. The graph is
an explicit adjacency mapping (id → ids) built from a registry snapshot, so
cycle checks never walk live model objects.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping

from agenda.core.cycles import find_any_cycle, find_cycle
from agenda.errors import CyclicDependencyError, NotFoundError
from agenda.models.priorities import Priority


class DependencyGraph:
    def __init__(self, edges: Mapping[str, Iterable[str]]) -> None:
        self._edges: dict[str, frozenset[str]] = {
            node: frozenset(targets) for node, targets in edges.items()
        }

    @classmethod
    def from_priorities(cls, priorities: Iterable[Priority]) -> DependencyGraph:
        return cls({priority.id: priority.depends_on for priority in priorities})

    @property
    def nodes(self) -> list[str]:
        return list(self._edges)

    def dependencies_of(self, priority_id: str) -> frozenset[str]:
        if priority_id not in self._edges:
            raise NotFoundError(priority_id)
        return self._edges[priority_id]

    def dependents_of(self, priority_id: str) -> list[str]:
        """Ids (in insertion order) whose ``depends_on`` includes ``priority_id``."""
        return [node for node, targets in self._edges.items() if priority_id in targets]

    def dangling(self) -> dict[str, frozenset[str]]:
        """Edges pointing at ids that are not in the graph, keyed by source id."""
        missing: dict[str, frozenset[str]] = {}
        for node, targets in self._edges.items():
            unknown = targets - self._edges.keys()
            if unknown:
                missing[node] = frozenset(unknown)
        return missing

    def would_create_cycle(self, priority_id: str, candidate_depends_on: Iterable[str]) -> bool:
        return self._cycle_with(priority_id, candidate_depends_on) is not None

    def ensure_acyclic(self, priority_id: str, candidate_depends_on: Iterable[str]) -> None:
        """Raise ``CyclicDependencyError`` if applying the edges would close a loop."""
        cycle = self._cycle_with(priority_id, candidate_depends_on)
        if cycle is not None:
            raise CyclicDependencyError(cycle)

    def find_cycle(self) -> list[str] | None:
        return find_any_cycle(self._edges)

    def is_satisfied(self, priority_id: str, completed: Collection[str]) -> bool:
        return not self.unsatisfied(priority_id, completed)

    def unsatisfied(self, priority_id: str, completed: Collection[str]) -> frozenset[str]:
        return frozenset(dep for dep in self.dependencies_of(priority_id) if dep not in completed)

    def topological_order(self) -> list[str]:
        """Dependencies before dependents; independent ids keep insertion order."""
        ordered: list[str] = []
        placed: set[str] = set()
        pending = [node for node in self._edges]
        while pending:
            ready = [
                node for node in pending
                if all(dep in placed or dep not in self._edges for dep in self._edges[node])
            ]
            if not ready:
                raise CyclicDependencyError(find_any_cycle(self._edges) or pending)
            for node in ready:
                ordered.append(node)
                placed.add(node)
            pending = [node for node in pending if node not in placed]
        return ordered

    def _cycle_with(self, priority_id: str, candidate_depends_on: Iterable[str]) -> list[str] | None:
        adjacency = dict(self._edges)
        adjacency[priority_id] = frozenset(candidate_depends_on)
        return find_cycle(adjacency, priority_id)


__all__ = ["DependencyGraph"]
