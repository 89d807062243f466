"""
Semantic validation for composed modelspec units.

Checks base types, constraint names, parameters and type compatibility,
field-name uniqueness, and endpoint contracts. Every check appends to a
diagnostics list; nothing here stops at the first problem.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from . import syntax
from .errors import Diagnostic, IssueKind, ValidationError, make_issue
from .ir.endpoints import HttpMethod, extract_path_params
from .ir.fields import PRIMITIVE_TYPES, ConstraintKind, FieldTypeKind
from .linker import ComposedUnit
from .manifest import CompilerConfig

logger = logging.getLogger(__name__)

# =============================================================================
# Validation Constants
# =============================================================================

STRING_TYPES = frozenset({FieldTypeKind.STRING.value})
NUMBER_TYPES = frozenset({FieldTypeKind.NUMBER.value})
INDEXABLE_TYPES = STRING_TYPES | NUMBER_TYPES

NON_NEGATIVE_INT = re.compile(r"^\d+$")
HTTP_STATUS_CODE = re.compile(r"^\d{3}$")

# Identifier conventions; an entity may use one of them, not both
PRIMARY_ID_FIELDS = ("_id", "id")


@dataclass(frozen=True)
class ConstraintRule:
    """
    Definition of one constraint.

    Attributes:
        valid_on: Base types the constraint may be attached to
        params: "none" for flags, "length" for one non-negative integer,
            "number" for one numeric literal, "length_range" for two
            non-negative integers, "range" for two numeric literals,
            "text" for one literal of any kind, "values" for one or more
            distinct literals
    """

    valid_on: frozenset[str]
    params: str

    @property
    def arity(self) -> int:
        return 2 if self.params in ("range", "length_range") else 1

    @property
    def integral(self) -> bool:
        return self.params in ("length", "length_range")


CONSTRAINT_RULES: dict[ConstraintKind, ConstraintRule] = {
    ConstraintKind.IS_UNIQUE: ConstraintRule(INDEXABLE_TYPES, "none"),
    ConstraintKind.INDEXED: ConstraintRule(INDEXABLE_TYPES, "none"),
    ConstraintKind.TRIM: ConstraintRule(STRING_TYPES, "none"),
    ConstraintKind.LOWERCASE: ConstraintRule(STRING_TYPES, "none"),
    ConstraintKind.UPPERCASE: ConstraintRule(STRING_TYPES, "none"),
    ConstraintKind.IS_EMAIL: ConstraintRule(STRING_TYPES, "none"),
    ConstraintKind.MIN_LENGTH: ConstraintRule(STRING_TYPES, "length"),
    ConstraintKind.MAX_LENGTH: ConstraintRule(STRING_TYPES, "length"),
    ConstraintKind.LENGTH: ConstraintRule(STRING_TYPES, "length"),
    ConstraintKind.LENGTH_BETWEEN: ConstraintRule(STRING_TYPES, "length_range"),
    ConstraintKind.STARTS_WITH: ConstraintRule(STRING_TYPES, "text"),
    ConstraintKind.ENDS_WITH: ConstraintRule(STRING_TYPES, "text"),
    ConstraintKind.IS_ANY_OF: ConstraintRule(STRING_TYPES, "values"),
    ConstraintKind.MIN: ConstraintRule(NUMBER_TYPES, "number"),
    ConstraintKind.MAX: ConstraintRule(NUMBER_TYPES, "number"),
    ConstraintKind.BETWEEN: ConstraintRule(NUMBER_TYPES, "range"),
    ConstraintKind.ENUM: ConstraintRule(STRING_TYPES, "values"),
}

# Constraint names accepted inside <...>; enum only comes from (a|b) groups
ANGLE_CONSTRAINTS = {kind.value: kind for kind in CONSTRAINT_RULES if kind != ConstraintKind.ENUM}


@dataclass
class FieldScope:
    """Names a field's base type may refer to."""

    file: Path
    entities: set[str]
    groups: set[str]


# =============================================================================
# Field Validation
# =============================================================================


def _source(field: syntax.FieldNode, scope: FieldScope) -> Path:
    """File a field was written in; spliced fields keep their group's file."""
    return field.file or scope.file


def validate_shape(
    block: syntax.ShapeBlock,
    owner: str,
    scope: FieldScope,
    config: CompilerConfig,
    issues: list[Diagnostic],
) -> None:
    """
    Validate every field of a composed shape, recursing into nested shapes.

    Spliced fields are only checked for name clashes here. Their types and
    constraints are checked once, where they are declared.

    Args:
        block: Shape with all spreads already flattened
        owner: Human-readable path of the shape, for messages
        scope: Visible entity and group names
        config: Compiler settings
        issues: Collector that receives each problem found
    """
    seen: dict[str, syntax.FieldNode] = {}
    for field in block.fields:
        first = seen.get(field.name)
        if first is not None:
            first_file = _source(first, scope)
            where = (
                f"line {first.line}"
                if first_file == _source(field, scope)
                else f"{first_file}:{first.line}"
            )
            issues.append(
                make_issue(
                    IssueKind.DUPLICATE_FIELD,
                    f"Duplicate field '{field.name}' in {owner} (first declared at {where})",
                    _source(field, scope),
                    field.line,
                    field.column,
                )
            )
        else:
            seen[field.name] = field
        if not field.spliced:
            validate_field(field, f"{owner}.{field.name}", scope, config, issues)


def validate_field(
    field: syntax.FieldNode,
    owner: str,
    scope: FieldScope,
    config: CompilerConfig,
    issues: list[Diagnostic],
) -> None:
    file = _source(field, scope)
    if field.shape is not None:
        type_name = FieldTypeKind.OBJECT.value
        validate_shape(field.shape, owner, scope, config, issues)
    else:
        type_name = field.base_type or ""
        if type_name not in PRIMITIVE_TYPES and type_name not in scope.entities:
            if type_name in scope.groups:
                message = (
                    f"'{type_name}' is a field group and cannot be used as a type "
                    f"(spread it with '...{type_name}')"
                )
            else:
                message = f"Unknown type '{type_name}' for field '{owner}'"
            issues.append(
                make_issue(IssueKind.UNKNOWN_TYPE, message, file, field.type_line, field.type_column)
            )
            return

    validate_annotations(field, type_name, owner, file, config, issues)


def validate_annotations(
    field: syntax.FieldNode,
    type_name: str,
    owner: str,
    file: Path,
    config: CompilerConfig,
    issues: list[Diagnostic],
) -> None:
    """
    Check each annotation of a field, then the combination of them.

    ``type_name`` is a primitive name, or an entity name for references.
    """
    resolved: dict[ConstraintKind, syntax.AnnotationNode] = {}

    for annotation in field.annotations:
        kind = ConstraintKind.ENUM if annotation.is_enum else ANGLE_CONSTRAINTS.get(annotation.name)
        if kind is None:
            issues.append(
                make_issue(
                    IssueKind.UNKNOWN_CONSTRAINT,
                    f"Unknown constraint '{annotation.name}' on field '{owner}'",
                    file,
                    annotation.line,
                    annotation.column,
                )
            )
            continue

        label = "enum list" if annotation.is_enum else f"'{annotation.name}'"
        if kind in resolved:
            issues.append(
                make_issue(
                    IssueKind.MALFORMED_ANNOTATION,
                    f"Constraint {label} is repeated on field '{owner}'",
                    file,
                    annotation.line,
                    annotation.column,
                )
            )
            continue
        resolved[kind] = annotation

        rule = CONSTRAINT_RULES[kind]
        if type_name not in rule.valid_on:
            described = type_name if type_name in PRIMITIVE_TYPES else f"reference to '{type_name}'"
            allowed = " or ".join(sorted(rule.valid_on))
            issues.append(
                make_issue(
                    IssueKind.TYPE_MISMATCH,
                    f"Constraint {label} is not valid on {described} field '{owner}' "
                    f"(only on {allowed})",
                    file,
                    annotation.line,
                    annotation.column,
                )
            )

        problem = _check_params(annotation, rule)
        if problem:
            issues.append(
                make_issue(
                    IssueKind.MALFORMED_ANNOTATION,
                    f"Constraint {label} on field '{owner}' {problem}",
                    file,
                    annotation.line,
                    annotation.column,
                )
            )
            resolved.pop(kind)

    for message in _check_combinations(resolved, config):
        issues.append(
            make_issue(
                IssueKind.MALFORMED_ANNOTATION,
                f"Field '{owner}': {message}",
                file,
                field.line,
                field.column,
            )
        )


def _check_params(annotation: syntax.AnnotationNode, rule: ConstraintRule) -> str | None:
    """Return a description of what is wrong with the parameters, or None."""
    params = annotation.params

    if rule.params == "none":
        if params or annotation.has_colon:
            return "takes no parameters"
        return None

    if rule.params == "values":
        if not params:
            return "needs at least one value"
        values = [p.value for p in params]
        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            return f"repeats value(s) {', '.join(duplicates)}"
        return None

    if len(params) != rule.arity:
        wanted = "two parameters" if rule.arity == 2 else "one parameter"
        return f"takes exactly {wanted}, got {len(params)}"
    if rule.params == "text":
        return None

    for param in params:
        if param.kind != "number":
            return f"expects a number, got '{param.value}'"
        if rule.integral and not NON_NEGATIVE_INT.match(param.value):
            return f"expects a non-negative integer, got '{param.value}'"

    if rule.arity == 2 and float(params[0].value) > float(params[1].value):
        return f"has a lower bound above its upper bound ({params[0].value} > {params[1].value})"
    return None


def _number(annotation: syntax.AnnotationNode | None) -> float | None:
    if annotation is None:
        return None
    return float(annotation.params[0].value)


def _check_combinations(
    resolved: dict[ConstraintKind, syntax.AnnotationNode], config: CompilerConfig
) -> list[str]:
    problems = []

    if ConstraintKind.LOWERCASE in resolved and ConstraintKind.UPPERCASE in resolved:
        problems.append("'lowercase' and 'uppercase' cannot be combined")

    low, high = _number(resolved.get(ConstraintKind.MIN)), _number(resolved.get(ConstraintKind.MAX))
    if low is not None and high is not None and low > high:
        problems.append(f"min ({low:g}) is greater than max ({high:g})")

    min_len = _number(resolved.get(ConstraintKind.MIN_LENGTH))
    max_len = _number(resolved.get(ConstraintKind.MAX_LENGTH))
    if min_len is not None and max_len is not None and min_len > max_len:
        problems.append(f"minLength ({min_len:g}) is greater than maxLength ({max_len:g})")

    exact = _number(resolved.get(ConstraintKind.LENGTH))
    if exact is not None:
        if min_len is not None and min_len > exact:
            problems.append(f"minLength ({min_len:g}) contradicts length ({exact:g})")
        if max_len is not None and max_len < exact:
            problems.append(f"maxLength ({max_len:g}) contradicts length ({exact:g})")

    if not config.allow_enum_with_flags and ConstraintKind.ENUM in resolved and len(resolved) > 1:
        problems.append("an enum list cannot be combined with other constraints")

    return problems


# =============================================================================
# Declaration Validation
# =============================================================================


def _scope(unit: ComposedUnit, file: Path) -> FieldScope:
    return FieldScope(
        file=file, entities=unit.visible_entities(file), groups=unit.visible_groups(file)
    )


def validate_entities(unit: ComposedUnit, config: CompilerConfig) -> list[Diagnostic]:
    """
    Validate all composed entities, then every field group once in its own file.

    Checks:
    - Base types are primitives or visible entities
    - Constraints are known, well-formed and valid for the field type
    - No duplicate field names in any shape
    - Only one primary identifier convention per entity

    Returns:
        List of issues
    """
    issues: list[Diagnostic] = []

    for entity in unit.entities:
        scope = _scope(unit, entity.file)
        validate_shape(entity.body, entity.name, scope, config, issues)

        fields = entity.body.fields
        id_fields = [f for f in fields if f.name in PRIMARY_ID_FIELDS]
        if {f.name for f in id_fields} == set(PRIMARY_ID_FIELDS):
            second = next(f for f in id_fields if f.name != id_fields[0].name)
            issues.append(
                make_issue(
                    IssueKind.DUPLICATE_FIELD,
                    f"Entity '{entity.name}' declares both '_id' and 'id'; "
                    f"use one identifier convention",
                    _source(second, scope),
                    second.line,
                    second.column,
                )
            )

    for group in unit.groups:
        validate_shape(group.body, group.name, _scope(unit, group.file), config, issues)

    return issues


def validate_endpoints(unit: ComposedUnit, config: CompilerConfig) -> list[Diagnostic]:
    """
    Validate all composed endpoints.

    Checks:
    - Method is a supported HTTP verb
    - Every ``:param`` in the path has a field in ``params``
    - At least one response, with unique tags and a valid status code
    - All input and response shapes, as for entities

    Returns:
        List of issues
    """
    issues: list[Diagnostic] = []

    for endpoint in unit.endpoints:
        file = endpoint.file
        scope = _scope(unit, file)

        if endpoint.method.upper() not in HttpMethod.__members__:
            supported = ", ".join(m.value for m in HttpMethod)
            issues.append(
                make_issue(
                    IssueKind.INVALID_METHOD,
                    f"Endpoint '{endpoint.name}' uses unsupported method "
                    f"'{endpoint.method}' (expected one of {supported})",
                    file,
                    endpoint.method_line,
                    endpoint.method_column,
                )
            )

        param_names = {f.name for f in endpoint.params.fields} if endpoint.params else set()
        for param in extract_path_params(endpoint.path):
            if param not in param_names:
                issues.append(
                    make_issue(
                        IssueKind.PATH_PARAM_MISMATCH,
                        f"Path parameter ':{param}' of endpoint '{endpoint.name}' "
                        f"has no matching field in params",
                        file,
                        endpoint.path_line,
                        endpoint.path_column,
                    )
                )

        if not endpoint.responses:
            issues.append(
                make_issue(
                    IssueKind.MISSING_RESPONSE,
                    f"Endpoint '{endpoint.name}' declares no response.<tag> block",
                    file,
                    endpoint.line,
                    endpoint.column,
                )
            )

        seen_tags: set[str] = set()
        for response in endpoint.responses:
            if response.tag in seen_tags:
                issues.append(
                    make_issue(
                        IssueKind.DUPLICATE_FIELD,
                        f"Endpoint '{endpoint.name}' declares 'response.{response.tag}' twice",
                        file,
                        response.line,
                        response.column,
                    )
                )
            seen_tags.add(response.tag)
            issues.extend(_check_status_code(endpoint, response))

        for section, block in endpoint.shape_blocks():
            validate_shape(block, f"{endpoint.name}.{section}", scope, config, issues)

    return issues


def _check_status_code(
    endpoint: syntax.EndpointNode, response: syntax.ResponseNode
) -> list[Diagnostic]:
    code = response.http_code
    if code is None:
        return [
            make_issue(
                IssueKind.INVALID_STATUS_CODE,
                f"'response.{response.tag}' of endpoint '{endpoint.name}' has no http.code",
                endpoint.file,
                response.line,
                response.column,
            )
        ]
    if not HTTP_STATUS_CODE.match(code) or not 100 <= int(code) <= 599:
        return [
            make_issue(
                IssueKind.INVALID_STATUS_CODE,
                f"'{code}' is not a valid HTTP status code in 'response.{response.tag}' "
                f"of endpoint '{endpoint.name}'",
                endpoint.file,
                response.code_line,
                response.code_column,
            )
        ]
    return []


# =============================================================================
# Unit Validation
# =============================================================================


def validate_unit(unit: ComposedUnit, config: CompilerConfig | None = None) -> list[Diagnostic]:
    """
    Run every semantic check over a composed unit.

    Args:
        unit: Composed unit without composition diagnostics
        config: Compiler settings; defaults apply when omitted

    Returns:
        All issues found, entities first, then endpoints
    """
    config = config or CompilerConfig()
    issues = validate_entities(unit, config)
    issues.extend(validate_endpoints(unit, config))
    logger.debug("Validation found %d issue(s)", len(issues))
    return issues


def ensure_valid(unit: ComposedUnit, config: CompilerConfig | None = None) -> None:
    """
    Validate a unit and raise if anything is wrong.

    Raises:
        ValidationError: Carrying every issue found
    """
    issues = validate_unit(unit, config)
    if issues:
        raise ValidationError(issues)
