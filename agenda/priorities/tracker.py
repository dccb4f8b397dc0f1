"""Per-conversation record of completed priorities."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class RunOnceTracker:
    """Completion record for a single conversation.

    Every completion is recorded: the selector consults ``is_used`` for
    ``execute_once`` priorities and ``completed`` for dependency checks.
    Create one tracker per conversation; trackers are never shared.
    """

    def __init__(self, conversation_id: str) -> None:
        self.conversation_id = conversation_id
        self._completed: dict[str, None] = {}

    def mark_completed(self, priority_id: str) -> None:
        if priority_id in self._completed:
            return
        self._completed[priority_id] = None
        logger.debug("Conversation %s completed %s", self.conversation_id, priority_id)

    def is_used(self, priority_id: str) -> bool:
        return priority_id in self._completed

    @property
    def completed(self) -> frozenset[str]:
        return frozenset(self._completed)

    def completion_order(self) -> list[str]:
        return list(self._completed)

    def reset(self) -> None:
        self._completed.clear()


__all__ = ["RunOnceTracker"]
