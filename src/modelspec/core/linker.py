"""
Linker for modelspec.

Loads a set of root spec files with their imports and composes them into a
single unit with every spread flattened.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from . import syntax
from .errors import Diagnostic
from .linker_impl import (
    SpecGraph,
    SymbolTable,
    SpreadExpander,
    build_symbol_table,
    load_spec_graph,
)

logger = logging.getLogger(__name__)


@dataclass
class ComposedUnit:
    """
    A compilation unit after import loading and spread expansion.

    Attributes:
        entities: Composed entity declarations, root file first, in declaration order
        endpoints: Composed endpoint declarations, same ordering
        groups: Declarations consumed by a plain spread; never part of the IR
        files: Every loaded file in load order
        diagnostics: Load and composition problems; non-empty means no IR
    """

    entities: list[syntax.DeclarationNode] = field(default_factory=list)
    endpoints: list[syntax.EndpointNode] = field(default_factory=list)
    groups: list[syntax.DeclarationNode] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    scopes: dict[Path, list[Path]] = field(default_factory=dict)

    def visible_entities(self, file: Path) -> set[str]:
        """Entity names declared in ``file`` or anything it imports transitively."""
        scope = set(self.scopes.get(file, [file]))
        return {entity.name for entity in self.entities if entity.file in scope}

    def visible_groups(self, file: Path) -> set[str]:
        scope = set(self.scopes.get(file, [file]))
        return {group.name for group in self.groups if group.file in scope}

    @property
    def ok(self) -> bool:
        return not self.diagnostics


def compose(graph: SpecGraph, symbols: SymbolTable) -> ComposedUnit:
    """
    Expand spreads in every loaded declaration and split entities from groups.

    Args:
        graph: Loaded import graph without load errors
        symbols: Symbol table built from ``graph``

    Returns:
        ComposedUnit; composition problems are in its diagnostics
    """
    expander = SpreadExpander(graph, symbols)
    unit = ComposedUnit(files=list(graph.files))

    declarations: list[tuple[syntax.DeclarationNode, syntax.ShapeBlock]] = []
    for spec_file in graph.files.values():
        for decl in spec_file.declarations:
            if symbols.by_file[decl.file].get(decl.name) is not decl:
                continue  # same-file duplicate, already reported
            if isinstance(decl, syntax.EndpointNode):
                unit.endpoints.append(expander.expand_endpoint(decl))
                continue
            declarations.append((decl, expander.expand_declaration(decl)))

    for decl, body in declarations:
        composed = syntax.DeclarationNode(
            name=decl.name, body=body, file=decl.file, line=decl.line, column=decl.column
        )
        if (decl.file, decl.name) in expander.groups:
            unit.groups.append(composed)
        else:
            unit.entities.append(composed)

    for decl in [*unit.entities, *unit.endpoints]:
        symbols.claim(decl)

    unit.diagnostics = [*symbols.diagnostics, *_dedupe(expander.diagnostics)]
    unit.scopes = {path: expander.scope(path) for path in graph.files}
    return unit


def _dedupe(diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    seen: set[Diagnostic] = set()
    unique = []
    for diagnostic in diagnostics:
        if diagnostic not in seen:
            seen.add(diagnostic)
            unique.append(diagnostic)
    return unique


def link_specs(roots: list[Path], encoding: str = "utf-8") -> ComposedUnit:
    """
    Load root spec files with their imports and compose them.

    If any file fails to load (missing, cyclic import, lex or parse error)
    composition is skipped and the unit carries only the load diagnostics.

    Args:
        roots: Root spec files, compiled as one unit
        encoding: Text encoding for every file read

    Returns:
        ComposedUnit ready for validation when ``unit.ok``
    """
    graph = load_spec_graph(roots, encoding)
    if graph.diagnostics:
        logger.debug("Linking stopped after %d load error(s)", len(graph.diagnostics))
        return ComposedUnit(files=list(graph.files), diagnostics=list(graph.diagnostics))

    symbols = build_symbol_table(graph)
    unit = compose(graph, symbols)
    logger.debug(
        "Linked %d entit(ies), %d endpoint(s), %d group(s) from %d file(s)",
        len(unit.entities),
        len(unit.endpoints),
        len(unit.groups),
        len(unit.files),
    )
    return unit
