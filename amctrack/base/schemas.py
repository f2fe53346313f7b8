from typing import ClassVar, Self

from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """
    Body of a PATCH request.

    Every field may be omitted. Only fields listed in `nullable` may be sent
    as an explicit null; the rest map to NOT NULL columns.
    """

    nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self) -> Self:
        nulls = sorted(
            name
            for name in self.model_fields_set
            if name not in self.nullable and getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")
        return self
