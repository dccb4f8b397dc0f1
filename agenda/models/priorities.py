"""Priority records: the weighted, trigger-driven goals of an agent.

A Priority says *when* an agent should pursue a goal (triggers, guard,
dependencies), *what it needs* first (required data) and *what to do*
once activated. The "what to do" part has two mutually exclusive sources:

  - ``task_id`` set            → the linked Task supplies the instructions
  - ``completion_criteria``    → free-text guidance run inline

``actions`` are independent of both and always accompany the effect.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from agenda.models.guards import GuardExpression

MIN_WEIGHT = 1
MAX_WEIGHT = 100
DEFAULT_WEIGHT = 50

COMMON_DATA_FIELDS: dict[str, str] = {
    "nombre": "Full name",
    "email": "Email address",
    "telefono": "Phone number",
    "tipo_operacion": "Operation type (rent/sale)",
    "ubicacion": "Location or area of interest",
    "tipo_propiedad": "Property type",
    "presupuesto": "Available budget",
    "urgencia": "Urgency level",
    "fecha_mudanza": "Moving date",
    "financiamiento": "Financing type",
    "property_id": "Specific property id",
    "complaint_details": "Complaint details",
    "preferred_contact": "Preferred contact method",
}

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def fold_text(text: str) -> str:
    """Lowercase and strip diacritics (``"Ñandú"`` → ``"nandu"``)."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify(name: str, prefix: str = "priority") -> str:
    """Derive a semantic id from a human label.

    >>> slugify("Reembolso Rápido!")
    'priority_reembolso_rapido'
    """
    snake = _NON_ALNUM.sub("", fold_text(name)).strip()
    return f"{prefix}_{_WHITESPACE.sub('_', snake)}"


class PriorityActionType(StrEnum):
    mark_milestone = "mark_milestone"
    execute_task = "execute_task"
    update_state = "update_state"
    custom = "custom"


class PriorityAction(BaseModel):
    type: PriorityActionType
    name: str
    description: str = ""
    execution_prompt: str = ""
    params: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_params(self) -> PriorityAction:
        if self.type == PriorityActionType.execute_task:
            task_id = self.params.get("task_id")
            if not isinstance(task_id, str) or not task_id:
                raise ValueError("execute_task actions require params.task_id")
        return self


@dataclass(frozen=True, slots=True)
class TaskExecution:
    task_id: str


@dataclass(frozen=True, slots=True)
class InlineExecution:
    completion_criteria: str


Execution = TaskExecution | InlineExecution


def _ordered_unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class Priority(BaseModel):
    id: str
    name: str
    description: str = ""
    weight: int = DEFAULT_WEIGHT
    triggers: list[str] = Field(default_factory=list)
    required_data: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    guard: GuardExpression | None = None
    task_id: str | None = None
    completion_criteria: str = ""
    actions: list[PriorityAction] = Field(default_factory=list)
    enabled: bool = True
    execute_once: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def create(cls, name: str, **fields: Any) -> Priority:
        """Build a new priority whose id is derived once from ``name``."""
        return cls(id=slugify(name), name=name, **fields)

    @field_validator("weight")
    @classmethod
    def _weight_in_range(cls, value: int) -> int:
        if not MIN_WEIGHT <= value <= MAX_WEIGHT:
            raise ValueError(f"weight must be in [{MIN_WEIGHT}, {MAX_WEIGHT}]")
        return value

    @field_validator("triggers")
    @classmethod
    def _clean_triggers(cls, value: list[str]) -> list[str]:
        return _ordered_unique([phrase.strip() for phrase in value if phrase.strip()])

    @field_validator("required_data")
    @classmethod
    def _no_duplicate_fields(cls, value: list[str]) -> list[str]:
        duplicates = sorted({key for key in value if value.count(key) > 1})
        if duplicates:
            raise ValueError(f"duplicate required_data keys: {', '.join(duplicates)}")
        return value

    @field_validator("depends_on")
    @classmethod
    def _dedupe_dependencies(cls, value: list[str]) -> list[str]:
        return _ordered_unique(value)

    @field_validator("task_id")
    @classmethod
    def _blank_task_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _validate_shape(self) -> Priority:
        if self.id in self.depends_on:
            raise ValueError(f"priority {self.id} cannot depend on itself")
        if self.task_id is not None and self.completion_criteria:
            raise ValueError("task_id and completion_criteria are mutually exclusive")
        return self

    @property
    def execution(self) -> Execution:
        if self.task_id is not None:
            return TaskExecution(task_id=self.task_id)
        return InlineExecution(completion_criteria=self.completion_criteria)

    @property
    def has_effect(self) -> bool:
        return self.task_id is not None or bool(self.completion_criteria) or bool(self.actions)


__all__ = [
    "COMMON_DATA_FIELDS",
    "DEFAULT_WEIGHT",
    "Execution",
    "InlineExecution",
    "MAX_WEIGHT",
    "MIN_WEIGHT",
    "Priority",
    "PriorityAction",
    "PriorityActionType",
    "TaskExecution",
    "fold_text",
    "slugify",
]
