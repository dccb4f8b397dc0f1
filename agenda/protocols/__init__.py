from agenda.protocols.actions import ActionExecutor
from agenda.protocols.guards import GuardEvaluator
from agenda.protocols.persistence import PriorityStore
from agenda.protocols.tasks import TaskCatalog
from agenda.protocols.triggers import TriggerMatcher

__all__ = [
    "ActionExecutor",
    "GuardEvaluator",
    "PriorityStore",
    "TaskCatalog",
    "TriggerMatcher",
]
