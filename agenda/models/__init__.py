from __future__ import annotations

from agenda.models.conversation import ConversationState, has_value
from agenda.models.effects import Activation, Effect, RequestData, RunInline, RunTask
from agenda.models.facts import FactCondition, FactDefinition
from agenda.models.guards import GuardExpression
from agenda.models.orchestration import AgentOrchestration
from agenda.models.priorities import (
    COMMON_DATA_FIELDS,
    DEFAULT_WEIGHT,
    InlineExecution,
    Priority,
    PriorityAction,
    PriorityActionType,
    TaskExecution,
    slugify,
)
from agenda.models.tasks import Task, TaskPrompt, TaskType

__all__ = [
    "Activation",
    "AgentOrchestration",
    "COMMON_DATA_FIELDS",
    "ConversationState",
    "DEFAULT_WEIGHT",
    "Effect",
    "FactCondition",
    "FactDefinition",
    "GuardExpression",
    "InlineExecution",
    "Priority",
    "PriorityAction",
    "PriorityActionType",
    "RequestData",
    "RunInline",
    "RunTask",
    "Task",
    "TaskExecution",
    "TaskPrompt",
    "TaskType",
    "has_value",
    "slugify",
]
