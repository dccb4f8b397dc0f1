"""Effects a selected priority resolves to.

Exactly one effect is produced per activation:

  - ``RequestData`` → ask the user for the missing fields; run nothing else
  - ``RunTask``     → hand the linked task to the executor
  - ``RunInline``   → free-text completion criteria plus the action list
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from agenda.models.priorities import Priority, PriorityAction


class RequestData(BaseModel):
    kind: Literal["request_data"] = "request_data"
    priority_id: str
    fields: frozenset[str]


class RunTask(BaseModel):
    kind: Literal["run_task"] = "run_task"
    priority_id: str
    task_id: str
    actions: list[PriorityAction] = Field(default_factory=list)


class RunInline(BaseModel):
    kind: Literal["run_inline"] = "run_inline"
    priority_id: str
    completion_criteria: str = ""
    actions: list[PriorityAction] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True for data-gathering priorities that have nothing left to run."""
        return not self.completion_criteria and not self.actions


Effect = Annotated[RequestData | RunTask | RunInline, Field(discriminator="kind")]


class Activation(BaseModel):
    """The single priority acted on in a turn, bound to its effect."""

    priority: Priority
    missing_data: frozenset[str] = frozenset()
    effect: Effect

    @property
    def priority_id(self) -> str:
        return self.priority.id


__all__ = ["Activation", "Effect", "RequestData", "RunInline", "RunTask"]
