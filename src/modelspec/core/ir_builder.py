"""
IR builder for modelspec.

Turns a validated, composed unit into the immutable CompiledSpec handed to
generators. Assumes validation passed: every type resolves and every
constraint parameter is well-formed.
"""

import logging
from pathlib import Path

from . import ir, syntax
from .linker import ComposedUnit
from .validator import ANGLE_CONSTRAINTS, CONSTRAINT_RULES

logger = logging.getLogger(__name__)


def _location(file: Path, line: int, column: int) -> ir.SourceLocation:
    return ir.SourceLocation(file=str(file), line=line, column=column)


def _numeric(value: str) -> int | float:
    try:
        return int(value)
    except ValueError:
        return float(value)


def build_constraint(annotation: syntax.AnnotationNode) -> ir.Constraint:
    """
    Convert a validated annotation into a typed constraint.

    Examples:
        <isUnique>         -> Constraint(kind=IS_UNIQUE)
        <maxLength:140>    -> Constraint(kind=MAX_LENGTH, value=140)
        <between:0,100>    -> Constraint(kind=BETWEEN, bounds=(0, 100))
        <startsWith:sk_>   -> Constraint(kind=STARTS_WITH, text="sk_")
        <isAnyOf:eu,us>    -> Constraint(kind=IS_ANY_OF, values=["eu", "us"])
        (light|dark)       -> Constraint(kind=ENUM, values=["light", "dark"])
    """
    values = [p.value for p in annotation.params]
    if annotation.is_enum:
        return ir.Constraint(kind=ir.ConstraintKind.ENUM, values=values)

    kind = ANGLE_CONSTRAINTS[annotation.name]
    params = CONSTRAINT_RULES[kind].params
    if params == "values":
        return ir.Constraint(kind=kind, values=values)
    if params == "text":
        return ir.Constraint(kind=kind, text=values[0])
    if params in ("range", "length_range"):
        return ir.Constraint(kind=kind, bounds=(_numeric(values[0]), _numeric(values[1])))
    value = _numeric(values[0]) if values else None
    return ir.Constraint(kind=kind, value=value)


def build_field(field: syntax.FieldNode, file: Path) -> ir.FieldSpec:
    """Convert a composed field, recursing into its nested shape."""
    ref_entity = None
    nested: list[ir.FieldSpec] = []

    if field.shape is not None:
        field_type = ir.FieldTypeKind.OBJECT
        nested = build_fields(field.shape, file)
    elif field.base_type in ir.PRIMITIVE_TYPES:
        field_type = ir.FieldTypeKind(field.base_type)
    else:
        field_type = ir.FieldTypeKind.REF
        ref_entity = field.base_type

    return ir.FieldSpec(
        name=field.name,
        type=field_type,
        ref_entity=ref_entity,
        cardinality=ir.Cardinality.from_markers(field.optional, field.array),
        fields=nested,
        constraints=[build_constraint(a) for a in field.annotations],
        description=field.description,
        location=_location(field.file or file, field.line, field.column),
    )


def build_fields(block: syntax.ShapeBlock, file: Path) -> list[ir.FieldSpec]:
    return [build_field(field, file) for field in block.fields]


def build_entity(decl: syntax.DeclarationNode) -> ir.EntitySpec:
    return ir.EntitySpec(
        name=decl.name,
        fields=build_fields(decl.body, decl.file),
        location=_location(decl.file, decl.line, decl.column),
    )


def build_endpoint(endpoint: syntax.EndpointNode) -> ir.EndpointSpec:
    file = endpoint.file

    def section(block: syntax.ShapeBlock | None) -> list[ir.FieldSpec] | None:
        return build_fields(block, file) if block is not None else None

    responses = [
        ir.ResponseSpec(
            tag=response.tag,
            http_code=int(response.http_code or 0),
            status=response.status,
            message=response.message,
            data=build_fields(response.data, file),
            location=_location(file, response.line, response.column),
        )
        for response in endpoint.responses
    ]

    return ir.EndpointSpec(
        name=endpoint.name,
        path=endpoint.path,
        method=ir.HttpMethod(endpoint.method.upper()),
        params=section(endpoint.params),
        query=section(endpoint.query),
        body=section(endpoint.body),
        responses=responses,
        location=_location(file, endpoint.line, endpoint.column),
    )


def build_ir(unit: ComposedUnit) -> ir.CompiledSpec:
    """
    Build the CompiledSpec from a validated unit.

    Entities and endpoints keep the unit's order: root file first, then
    imports in load order, each file in declaration order.

    Args:
        unit: Composed unit that passed validation

    Returns:
        Immutable CompiledSpec
    """
    compiled = ir.CompiledSpec(
        entities={decl.name: build_entity(decl) for decl in unit.entities},
        endpoints={endpoint.name: build_endpoint(endpoint) for endpoint in unit.endpoints},
        files=[str(path) for path in unit.files],
    )
    logger.debug(
        "Built IR with %d entit(ies) and %d endpoint(s)",
        len(compiled.entities),
        len(compiled.endpoints),
    )
    return compiled
