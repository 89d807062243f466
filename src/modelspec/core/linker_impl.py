"""
Linker implementation for modelspec.

Handles import-graph loading, symbol tables, and field-group spreading.
"""

from __future__ import annotations

import copy
import logging
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path

from . import syntax
from .errors import (
    Diagnostic,
    ErrorContext,
    ImportCycleError,
    ImportNotFoundError,
    IssueKind,
    LexError,
    LinkError,
    ParseError,
    SpreadCycleError,
    UnknownGroupError,
    make_issue,
)
from .parser import parse_spec_file

logger = logging.getLogger(__name__)

DeclKey = tuple[Path, str]


class VisitState(Enum):
    VISITING = "visiting"  # gray: on the current DFS path
    DONE = "done"  # black: fully explored


@dataclass
class SpecGraph:
    """
    Directed import graph keyed by resolved file path.

    Attributes:
        files: Successfully parsed files, in load order (roots first, imports depth-first)
        edges: Resolved import targets per file, in import order
        diagnostics: Load failures (lex/parse errors, missing files, cycles)
    """

    files: dict[Path, syntax.SpecFile] = field(default_factory=dict)
    edges: dict[Path, list[Path]] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def visible_files(self, path: Path) -> list[Path]:
        """The file itself followed by its transitive imports, breadth-first in import order."""
        seen = {path}
        order = [path]
        queue = deque([path])
        while queue:
            current = queue.popleft()
            for target in self.edges.get(current, []):
                if target not in seen and target in self.files:
                    seen.add(target)
                    order.append(target)
                    queue.append(target)
        return order


def _context(file: Path, line: int, column: int) -> ErrorContext:
    return ErrorContext(file=file, line=line, column=column)


def load_spec_graph(roots: list[Path], encoding: str = "utf-8") -> SpecGraph:
    """
    Load every root and everything it imports, transitively.

    Traversal is an explicit depth-first walk with gray/black marking, so an
    edge into a gray file is reported as a cycle naming the whole chain.
    A file that fails to lex or parse is recorded and loading continues.

    Args:
        roots: Root spec files
        encoding: Text encoding for every file read

    Returns:
        SpecGraph with the parsed files and any load diagnostics
    """
    graph = SpecGraph()
    state: dict[Path, VisitState] = {}

    for root in roots:
        root_path = root.resolve()
        if root_path in state:
            continue
        if not root_path.is_file():
            error = ImportNotFoundError(f"Spec file not found: {root_path}")
            graph.diagnostics.append(
                Diagnostic(str(root_path), 0, 0, error.kind, error.message)
            )
            continue
        _walk(root_path, graph, state, encoding)

    logger.debug("Loaded %d spec file(s) from %d root(s)", len(graph.files), len(roots))
    return graph


def _walk(
    root: Path, graph: SpecGraph, state: dict[Path, VisitState], encoding: str
) -> None:
    stack: list[tuple[Path, Iterator[syntax.ImportNode]]] = []

    def enter(path: Path) -> None:
        state[path] = VisitState.VISITING
        graph.edges[path] = []
        spec_file = _load_file(path, graph, encoding)
        imports = spec_file.imports if spec_file else []
        stack.append((path, iter(imports)))

    enter(root)
    while stack:
        current, pending = stack[-1]
        node = next(pending, None)
        if node is None:
            state[current] = VisitState.DONE
            stack.pop()
            continue

        target = (current.parent / node.path).resolve()
        graph.edges[current].append(target)
        target_state = state.get(target)

        if target_state is VisitState.VISITING:
            chain = [path for path, _ in stack]
            cycle = chain[chain.index(target) :] + [target]
            error: LinkError = ImportCycleError(
                cycle, _context(current, node.line, node.column)
            )
            graph.diagnostics.append(error.to_diagnostic())
        elif target_state is VisitState.DONE:
            continue
        elif not target.is_file():
            error = ImportNotFoundError(
                f"Imported file '{node.path}' not found (resolved to {target})",
                _context(current, node.line, node.column),
            )
            graph.diagnostics.append(error.to_diagnostic())
        else:
            enter(target)


def _load_file(path: Path, graph: SpecGraph, encoding: str) -> syntax.SpecFile | None:
    try:
        spec_file = parse_spec_file(path, encoding)
    except (LexError, ParseError) as e:
        logger.debug("Failed to parse %s: %s", path, e.message)
        graph.diagnostics.append(e.to_diagnostic())
        return None
    except (OSError, UnicodeDecodeError) as e:
        graph.diagnostics.append(
            make_issue(IssueKind.IMPORT_NOT_FOUND, f"Cannot read spec file: {e}", path, 0, 0)
        )
        return None
    graph.files[path] = spec_file
    return spec_file


@dataclass
class SymbolTable:
    """
    Named declarations of a compilation unit.

    Tracks declarations per file for scoped lookups and records where each
    entity/endpoint name was first defined so duplicates can be reported.
    """

    by_file: dict[Path, dict[str, syntax.DeclarationNode | syntax.EndpointNode]] = field(
        default_factory=dict
    )
    symbol_sources: dict[str, Path] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def add(self, decl: syntax.DeclarationNode | syntax.EndpointNode) -> None:
        """Add a declaration, reporting a same-file duplicate."""
        scope = self.by_file.setdefault(decl.file, {})
        if decl.name in scope:
            existing = scope[decl.name]
            self.diagnostics.append(
                make_issue(
                    IssueKind.DUPLICATE_DECLARATION,
                    f"Duplicate declaration '{decl.name}' (first declared at line {existing.line})",
                    decl.file,
                    decl.line,
                    decl.column,
                )
            )
            return
        scope[decl.name] = decl

    def claim(self, decl: syntax.DeclarationNode | syntax.EndpointNode) -> None:
        """Claim a unit-wide name for an entity or endpoint, reporting cross-file duplicates."""
        existing = self.symbol_sources.get(decl.name)
        if existing is not None and existing != decl.file:
            self.diagnostics.append(
                make_issue(
                    IssueKind.DUPLICATE_DECLARATION,
                    f"Duplicate declaration '{decl.name}' also defined in {existing}",
                    decl.file,
                    decl.line,
                    decl.column,
                )
            )
            return
        self.symbol_sources[decl.name] = decl.file

    def lookup(
        self, name: str, scope: list[Path]
    ) -> syntax.DeclarationNode | syntax.EndpointNode | None:
        """Find ``name`` in the first file of ``scope`` that declares it."""
        for path in scope:
            decl = self.by_file.get(path, {}).get(name)
            if decl is not None:
                return decl
        return None


def build_symbol_table(graph: SpecGraph) -> SymbolTable:
    """
    Build a symbol table from every loaded file.

    Args:
        graph: Loaded import graph

    Returns:
        SymbolTable; same-file duplicates are recorded in its diagnostics
    """
    symbols = SymbolTable()
    for spec_file in graph.files.values():
        for decl in spec_file.declarations:
            symbols.add(decl)
    return symbols


class SpreadExpander:
    """
    Expands ``...target`` directives into copies of the target's fields.

    Expanded declaration bodies are memoized; every splice is a deep copy,
    so two shapes spreading the same group never share field nodes.
    """

    def __init__(self, graph: SpecGraph, symbols: SymbolTable):
        self.graph = graph
        self.symbols = symbols
        self.groups: set[DeclKey] = set()
        self.diagnostics: list[Diagnostic] = []
        self._expanded: dict[DeclKey, syntax.ShapeBlock] = {}
        self._in_progress: list[DeclKey] = []
        self._scopes: dict[Path, list[Path]] = {}

    def scope(self, path: Path) -> list[Path]:
        if path not in self._scopes:
            self._scopes[path] = self.graph.visible_files(path)
        return self._scopes[path]

    def expand_declaration(self, decl: syntax.DeclarationNode) -> syntax.ShapeBlock:
        """Return the declaration's body with every spread flattened."""
        key = (decl.file, decl.name)
        if key in self._expanded:
            return self._expanded[key]
        if key in self._in_progress:
            start = self._in_progress.index(key)
            chain = [name for _, name in self._in_progress[start:]] + [decl.name]
            raise SpreadCycleError(chain, _context(decl.file, decl.line, decl.column))

        self._in_progress.append(key)
        try:
            body = self.expand_block(decl.body, decl.file)
        finally:
            self._in_progress.pop()
        self._expanded[key] = body
        return body

    def expand_block(self, block: syntax.ShapeBlock, file: Path) -> syntax.ShapeBlock:
        """Return a new block whose items contain no spreads."""
        items: list[syntax.FieldNode | syntax.SpreadNode] = []
        for item in block.items:
            if isinstance(item, syntax.SpreadNode):
                items.extend(self._splice(item, file))
            elif item.shape is not None:
                items.append(replace(item, shape=self.expand_block(item.shape, file)))
            else:
                items.append(copy.deepcopy(item))
        return syntax.ShapeBlock(items=items, line=block.line, column=block.column)

    def _splice(self, spread: syntax.SpreadNode, file: Path) -> list[syntax.FieldNode]:
        try:
            source = self._resolve(spread, file)
        except LinkError as e:
            self.diagnostics.append(e.to_diagnostic())
            return []
        logger.debug("Spreading '%s' into %s:%d", spread.target, file, spread.line)
        spliced = []
        for item in syntax.clone_fields(source):
            if isinstance(item, syntax.FieldNode):
                item.spliced = True
                spliced.append(item)
        return spliced

    def _resolve(self, spread: syntax.SpreadNode, file: Path) -> syntax.ShapeBlock:
        context = _context(file, spread.line, spread.column)
        head, *rest = spread.segments
        decl = self.symbols.lookup(head, self.scope(file))
        if not isinstance(decl, syntax.DeclarationNode):
            raise UnknownGroupError(spread.target, context)

        try:
            block = self.expand_declaration(decl)
        except SpreadCycleError as e:
            raise SpreadCycleError(e.chain, context) from e

        if not rest:
            self.groups.add((decl.file, decl.name))
            return block

        for segment in rest:
            nested = block.get_field(segment)
            if nested is None or nested.shape is None:
                raise UnknownGroupError(spread.target, context)
            block = nested.shape
        return block

    def expand_endpoint(self, endpoint: syntax.EndpointNode) -> syntax.EndpointNode:
        """Return a copy of the endpoint with every input and response shape flattened."""

        def expand(block: syntax.ShapeBlock | None) -> syntax.ShapeBlock | None:
            return self.expand_block(block, endpoint.file) if block is not None else None

        responses = [
            replace(response, data=self.expand_block(response.data, endpoint.file))
            for response in endpoint.responses
        ]
        return replace(
            endpoint,
            params=expand(endpoint.params),
            query=expand(endpoint.query),
            body=expand(endpoint.body),
            responses=responses,
        )
