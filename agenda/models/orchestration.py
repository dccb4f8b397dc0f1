from __future__ import annotations

from pydantic import BaseModel, Field

from agenda.models.facts import FactDefinition
from agenda.models.priorities import Priority
from agenda.models.tasks import Task


class AgentOrchestration(BaseModel):
    """Everything persisted for one agent: its priorities and what they reference."""

    agent_id: str
    priorities: list[Priority] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    fact_definitions: list[FactDefinition] = Field(default_factory=list)
    fallback_behavior: str = ""


__all__ = ["AgentOrchestration"]
