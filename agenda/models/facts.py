from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

FACT_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$", re.IGNORECASE)

FactType = Literal["exists", "not_exists", "equals", "any_exists", "all_exists", "composite"]


class FactCondition(BaseModel):
    fact: str


class FactDefinition(BaseModel):
    """A boolean fact derived from collected conversation data.

    Field usage depends on ``type``:

      - ``exists`` / ``not_exists`` → ``field``
      - ``equals``                  → ``field`` and ``value`` (omitted value means null)
      - ``any_exists`` / ``all_exists`` → ``fields``
      - ``composite``               → ``logic`` over ``conditions``
    """

    name: str
    type: FactType
    field: str | None = None
    fields: list[str] = Field(default_factory=list)
    value: Any = None
    logic: Literal["all", "any"] = "all"
    conditions: list[FactCondition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_shape(self) -> FactDefinition:
        if not FACT_NAME_PATTERN.match(self.name):
            raise ValueError(
                "name must be alphanumeric with underscores (e.g. has_budget, is_qualified)"
            )
        if self.type in ("exists", "not_exists", "equals") and not self.field:
            raise ValueError(f"{self.type} requires 'field'")
        if self.type in ("any_exists", "all_exists") and not self.fields:
            raise ValueError(f"{self.type} requires a non-empty 'fields' list")
        if self.type == "composite" and not self.conditions:
            raise ValueError("composite requires a non-empty 'conditions' list")
        return self


__all__ = ["FACT_NAME_PATTERN", "FactCondition", "FactDefinition", "FactType"]
