from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class TriggerMatcher(Protocol):
    def match(self, text: str, trigger_phrases: Sequence[str]) -> bool | Awaitable[bool]: ...


__all__ = ["TriggerMatcher"]
