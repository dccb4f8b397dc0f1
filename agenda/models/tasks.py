from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from agenda.models.priorities import slugify


class TaskType(StrEnum):
    CAPTURE_CONTACT_DATA = "CAPTURE_CONTACT_DATA"
    SEARCH_SINGLE_PROPERTY = "SEARCH_SINGLE_PROPERTY"
    SEARCH_RELATED_PROPERTIES = "SEARCH_RELATED_PROPERTIES"
    PROPERTY_SEARCH = "PROPERTY_SEARCH"
    SCHEDULE_APPOINTMENT = "SCHEDULE_APPOINTMENT"
    CSAT_SURVEY = "CSAT_SURVEY"
    COMPLAINT = "COMPLAINT"
    FAQ = "FAQ"
    MODERATION = "MODERATION"
    URL_PROPERTY_PORTAL = "URL_PROPERTY_PORTAL"
    CUSTOM = "CUSTOM"


class TaskPrompt(BaseModel):
    template: str = ""
    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, ge=1)


class Task(BaseModel):
    """An externally executed unit of work a priority can link to.

    Only ``id`` and ``enabled`` matter to priority evaluation; the prompt is
    carried so agent documents round-trip intact.
    """

    id: str
    name: str
    description: str = ""
    type: TaskType = TaskType.CUSTOM
    enabled: bool = True
    prompt: TaskPrompt = Field(default_factory=TaskPrompt)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(cls, name: str, **fields: Any) -> Task:
        return cls(id=slugify(name, prefix="task"), name=name, **fields)


__all__ = ["Task", "TaskPrompt", "TaskType"]
