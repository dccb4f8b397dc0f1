from __future__ import annotations

from agenda.models.priorities import Priority


def make_priority(priority_id: str, **fields: object) -> Priority:
    """Priority named after its id that triggers on its own id by default."""
    fields.setdefault("name", priority_id.replace("_", " ").title())
    fields.setdefault("triggers", [priority_id])
    return Priority(id=priority_id, **fields)  # type: ignore[arg-type]
