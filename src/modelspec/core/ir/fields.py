"""
Field type definitions for the modelspec IR.

This module contains the core field type system including base types,
cardinality, constraints, and field specifications.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .location import SourceLocation


class FieldTypeKind(str, Enum):
    """Base types a field can have."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    REF = "ref"  # reference to another entity


PRIMITIVE_TYPES = frozenset(
    {
        FieldTypeKind.STRING.value,
        FieldTypeKind.NUMBER.value,
        FieldTypeKind.BOOLEAN.value,
        FieldTypeKind.OBJECT.value,
    }
)


class Cardinality(str, Enum):
    """How many values a field holds and whether it may be absent."""

    SINGLE = "single"
    OPTIONAL = "optional"
    ARRAY = "array"
    OPTIONAL_ARRAY = "optional-array"

    @classmethod
    def from_markers(cls, optional: bool, array: bool) -> Cardinality:
        if array:
            return cls.OPTIONAL_ARRAY if optional else cls.ARRAY
        return cls.OPTIONAL if optional else cls.SINGLE


class ConstraintKind(str, Enum):
    """Closed set of constraints a field can carry."""

    IS_UNIQUE = "isUnique"
    INDEXED = "indexed"
    TRIM = "trim"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    IS_EMAIL = "isEmail"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    LENGTH = "length"
    MIN = "min"
    MAX = "max"
    BETWEEN = "between"
    LENGTH_BETWEEN = "lengthBetween"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    IS_ANY_OF = "isAnyOf"
    ENUM = "enum"


class Constraint(BaseModel):
    """
    A resolved constraint.

    Examples:
        - isUnique: Constraint(kind=IS_UNIQUE)
        - minLength:8: Constraint(kind=MIN_LENGTH, value=8)
        - between:0,100: Constraint(kind=BETWEEN, bounds=(0, 100))
        - startsWith:sk_: Constraint(kind=STARTS_WITH, text="sk_")
        - (light|dark): Constraint(kind=ENUM, values=["light", "dark"])
    """

    kind: ConstraintKind
    value: int | float | None = None
    bounds: tuple[int | float, int | float] | None = None
    text: str | None = None
    values: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class FieldSpec(BaseModel):
    """
    Specification for a single field in an entity, endpoint shape or nested object.

    Attributes:
        name: Field identifier
        type: Base type; for arrays, the element type
        ref_entity: Referenced entity name when type is REF
        cardinality: single, optional, array or optional-array
        fields: Nested shape for inline objects and arrays of objects
        constraints: Constraints in source order
        description: Trailing ``//`` comment from the spec
        location: Where the field was declared
    """

    name: str
    type: FieldTypeKind
    ref_entity: str | None = None
    cardinality: Cardinality = Cardinality.SINGLE
    fields: list[FieldSpec] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    description: str | None = None
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_optional(self) -> bool:
        return self.cardinality in (Cardinality.OPTIONAL, Cardinality.OPTIONAL_ARRAY)

    @property
    def is_array(self) -> bool:
        return self.cardinality in (Cardinality.ARRAY, Cardinality.OPTIONAL_ARRAY)

    @property
    def is_nested(self) -> bool:
        """True for inline objects and arrays of inline objects."""
        return bool(self.fields)

    @property
    def enum_values(self) -> list[str] | None:
        constraint = self.get_constraint(ConstraintKind.ENUM)
        return list(constraint.values) if constraint else None

    def has_constraint(self, kind: ConstraintKind) -> bool:
        return any(c.kind == kind for c in self.constraints)

    def get_constraint(self, kind: ConstraintKind) -> Constraint | None:
        for constraint in self.constraints:
            if constraint.kind == kind:
                return constraint
        return None

    def get_field(self, name: str) -> FieldSpec | None:
        """Get a nested field by name."""
        for field in self.fields:
            if field.name == name:
                return field
        return None
