"""Priority registry, dependency graph and per-turn selection."""

from agenda.priorities.binder import ExecutionBinder
from agenda.priorities.catalog import InMemoryTaskCatalog
from agenda.priorities.engine import ConversationSession, PriorityEngine, TurnOutcome
from agenda.priorities.graph import DependencyGraph
from agenda.priorities.registry import (
    PriorityRegistry,
    RemoveResult,
    UpdateResult,
    order_by_weight,
)
from agenda.priorities.resolver import missing_data
from agenda.priorities.selector import PrioritySelector
from agenda.priorities.tracker import RunOnceTracker

__all__ = [
    "ConversationSession",
    "DependencyGraph",
    "ExecutionBinder",
    "InMemoryTaskCatalog",
    "PriorityEngine",
    "PriorityRegistry",
    "PrioritySelector",
    "RemoveResult",
    "RunOnceTracker",
    "TurnOutcome",
    "UpdateResult",
    "missing_data",
    "order_by_weight",
]
