"""
Data model types for the modelspec IR.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .fields import FieldSpec
from .location import SourceLocation


class EntitySpec(BaseModel):
    """
    A flattened data model.

    Field groups have already been spread into ``fields``; their order is the
    source order with each spread's fields inserted at the spread point.

    Attributes:
        name: Entity name
        fields: Ordered field list
        location: Where the entity was declared
    """

    name: str
    fields: list[FieldSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_field(self, name: str) -> FieldSpec | None:
        """Get field by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None
