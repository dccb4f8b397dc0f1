"""Cycle search over plain adjacency mappings (node → nodes it points at)."""

from __future__ import annotations

from collections.abc import Collection, Mapping


def find_cycle(adjacency: Mapping[str, Collection[str]], start: str) -> list[str] | None:
    """Return a path ``start → … → start`` if ``start`` can reach itself."""
    parents: dict[str, str] = {}
    visited: set[str] = set()
    stack = [start]
    while stack:
        node = stack.pop()
        for neighbor in sorted(adjacency.get(node, ())):
            if neighbor == start:
                chain = [node]
                while chain[-1] != start:
                    chain.append(parents[chain[-1]])
                chain.reverse()
                return [*chain, start]
            if neighbor not in visited:
                visited.add(neighbor)
                parents[neighbor] = node
                stack.append(neighbor)
    return None


def find_any_cycle(adjacency: Mapping[str, Collection[str]]) -> list[str] | None:
    for node in adjacency:
        cycle = find_cycle(adjacency, node)
        if cycle is not None:
            return cycle
    return None


__all__ = ["find_any_cycle", "find_cycle"]
