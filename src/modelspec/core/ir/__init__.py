"""
modelspec Intermediate Representation (IR) types.

Types are organized into logical submodules and re-exported from this package.
"""

from .compiled import CompiledSpec
from .domain import EntitySpec
from .endpoints import (
    EndpointSpec,
    HttpMethod,
    ResponseSpec,
    extract_path_params,
)
from .fields import (
    PRIMITIVE_TYPES,
    Cardinality,
    Constraint,
    ConstraintKind,
    FieldSpec,
    FieldTypeKind,
)
from .location import SourceLocation

__all__ = [
    "CompiledSpec",
    "EntitySpec",
    "EndpointSpec",
    "HttpMethod",
    "ResponseSpec",
    "extract_path_params",
    "PRIMITIVE_TYPES",
    "Cardinality",
    "Constraint",
    "ConstraintKind",
    "FieldSpec",
    "FieldTypeKind",
    "SourceLocation",
]
