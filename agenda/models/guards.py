from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

GUARD_OPERATORS = ("all", "any", "not", "eq", "neq", "exists")


class GuardExpression(BaseModel):
    """One node of the guard DSL.

    Exactly one operator is set per node. ``all``/``any``/``not`` are Python
    keywords or builtins, so the attributes carry a trailing underscore and
    the serialized form uses the plain names.
    """

    model_config = ConfigDict(populate_by_name=True)

    all_: list[GuardExpression] | None = Field(default=None, alias="all")
    any_: list[GuardExpression] | None = Field(default=None, alias="any")
    not_: GuardExpression | None = Field(default=None, alias="not")
    eq: tuple[str, Any] | None = None
    neq: tuple[str, Any] | None = None
    exists: str | None = None

    @model_validator(mode="after")
    def _exactly_one_operator(self) -> GuardExpression:
        found = self.operators()
        if not found:
            raise ValueError(
                f"guard needs one operator ({', '.join(GUARD_OPERATORS)})"
            )
        if len(found) > 1:
            raise ValueError(f"only one operator per guard node, found: {', '.join(found)}")
        return self

    def operators(self) -> list[str]:
        values = {
            "all": self.all_,
            "any": self.any_,
            "not": self.not_,
            "eq": self.eq,
            "neq": self.neq,
            "exists": self.exists,
        }
        return [name for name in GUARD_OPERATORS if values[name] is not None]

    @property
    def is_empty(self) -> bool:
        """An empty ``all`` or ``any`` list places no restriction."""
        if self.all_ is not None and not self.all_:
            return True
        return self.any_ is not None and not self.any_

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["GUARD_OPERATORS", "GuardExpression"]
