"""Shared Pydantic bases."""

from typing import ClassVar

from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """Partial-update body: omitted fields are left alone, but fields backed by
    NOT NULL columns may not be sent as an explicit null."""

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulled = sorted(
            name for name in self.model_fields_set & self.non_nullable if getattr(self, name) is None
        )
        if nulled:
            raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return self
