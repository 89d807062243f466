"""
Raw syntax tree produced by the parser.

These nodes are transient: the linker composes them, the validator checks
them, and the IR builder turns them into the immutable IR. Unresolved names
(spread targets, entity references) stay opaque strings here.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path

ENUM_ANNOTATION = "enum"


@dataclass
class AnnotationParam:
    """A literal argument of a constraint or an enum member."""

    value: str
    kind: str  # "number" | "ident" | "string"


@dataclass
class AnnotationNode:
    """
    One constraint inside ``<...>`` or one whole ``(a|b|c)`` enum group.

    Attributes:
        name: Constraint name as written, or ``enum`` for enum groups
        params: Arguments after ``:`` (or enum members)
        has_colon: True when the constraint was written ``name:``
        is_enum: True for a ``(...)`` group
    """

    name: str
    params: list[AnnotationParam] = field(default_factory=list)
    line: int = 0
    column: int = 0
    has_colon: bool = False
    is_enum: bool = False


@dataclass
class ShapeBlock:
    """The ordered body of a ``{ ... }`` block."""

    items: list[FieldNode | SpreadNode] = field(default_factory=list)
    line: int = 0
    column: int = 0

    @property
    def fields(self) -> list[FieldNode]:
        return [item for item in self.items if isinstance(item, FieldNode)]

    def get_field(self, name: str) -> FieldNode | None:
        for item in self.fields:
            if item.name == name:
                return item
        return None


@dataclass
class FieldNode:
    """
    A field line: ``name[?][[]] type annotations // comment``.

    ``base_type`` is None when the field declares an inline ``{ ... }`` shape.
    ``file`` is where the line was written; copies spliced in by a spread
    keep it and have ``spliced`` set.
    """

    name: str
    base_type: str | None
    optional: bool = False
    array: bool = False
    shape: ShapeBlock | None = None
    annotations: list[AnnotationNode] = field(default_factory=list)
    description: str | None = None
    file: Path | None = None
    line: int = 0
    column: int = 0
    type_line: int = 0
    type_column: int = 0
    spliced: bool = False


@dataclass
class SpreadNode:
    """A ``...target`` directive; ``target`` may be dotted."""

    target: str
    line: int = 0
    column: int = 0

    @property
    def segments(self) -> list[str]:
        return self.target.split(".")


@dataclass
class ImportNode:
    path: str
    line: int = 0
    column: int = 0


@dataclass
class DeclarationNode:
    """
    ``Name { ... }`` without endpoint keys.

    Whether it is an entity or a field group is decided by the linker:
    a declaration consumed by a plain spread is a group.
    """

    name: str
    body: ShapeBlock
    file: Path
    line: int = 0
    column: int = 0


@dataclass
class ResponseNode:
    """A ``response.<tag> { ... }`` block inside an endpoint."""

    tag: str
    http_code: str | None = None
    status: str | None = None
    message: str | None = None
    data: ShapeBlock = field(default_factory=ShapeBlock)
    line: int = 0
    column: int = 0
    code_line: int = 0
    code_column: int = 0


@dataclass
class EndpointNode:
    """A declaration whose body holds ``path``/``method`` keys."""

    name: str
    path: str
    method: str
    file: Path
    params: ShapeBlock | None = None
    query: ShapeBlock | None = None
    body: ShapeBlock | None = None
    responses: list[ResponseNode] = field(default_factory=list)
    line: int = 0
    column: int = 0
    path_line: int = 0
    path_column: int = 0
    method_line: int = 0
    method_column: int = 0

    def input_blocks(self) -> list[tuple[str, ShapeBlock]]:
        """Return the declared input blocks as (section, block) pairs in a fixed order."""
        blocks = [("params", self.params), ("query", self.query), ("body", self.body)]
        return [(section, block) for section, block in blocks if block is not None]

    def shape_blocks(self) -> list[tuple[str, ShapeBlock]]:
        """Input blocks followed by every response data block."""
        blocks = self.input_blocks()
        blocks.extend((f"response.{r.tag}.data", r.data) for r in self.responses)
        return blocks


@dataclass
class SpecFile:
    """
    A parsed source unit.

    Attributes:
        path: Resolved path of the file
        declarations: Top-level declarations in source order
        imports: Import directives in source order
    """

    path: Path
    declarations: list[DeclarationNode | EndpointNode] = field(default_factory=list)
    imports: list[ImportNode] = field(default_factory=list)

    def get_declaration(self, name: str) -> DeclarationNode | EndpointNode | None:
        for decl in self.declarations:
            if decl.name == name:
                return decl
        return None


def clone_fields(block: ShapeBlock) -> list[FieldNode | SpreadNode]:
    """Independent copies of a block's items, nested shapes included."""
    return copy.deepcopy(block.items)
