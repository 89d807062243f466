"""
Compilation pipeline.

Provides convenient functions for the load → link → validate → build pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from . import ir
from .errors import CompilationError, Diagnostic
from .ir_builder import build_ir
from .linker import link_specs
from .manifest import CompilerConfig, ProjectManifest, load_manifest
from .validator import validate_unit

logger = logging.getLogger(__name__)


@dataclass
class CompileResult:
    """
    Outcome of one compilation run.

    ``ir`` is present only when ``diagnostics`` is empty.
    """

    ir: ir.CompiledSpec | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.ir is not None and not self.diagnostics

    def raise_for_errors(self) -> ir.CompiledSpec:
        """
        Return the IR, or raise if the run failed.

        Raises:
            CompilationError: Carrying every diagnostic of the run
        """
        if self.ir is None or self.diagnostics:
            raise CompilationError(self.diagnostics)
        return self.ir


def compile_specs(
    roots: list[Path | str],
    config: CompilerConfig | None = None,
) -> CompileResult:
    """
    Compile several root spec files as one unit.

    Stages stop at the first one that reports problems: load and link
    errors skip validation, validation issues skip IR building.

    Args:
        roots: Root spec file paths
        config: Compiler settings; defaults apply when omitted

    Returns:
        CompileResult with the IR or the full diagnostic list

    Example:
        >>> from modelspec.core import compile_specs
        >>> result = compile_specs(["specs/data/mood.go"])
        >>> result.raise_for_errors().get_entity("Mood").field_names
    """
    config = config or CompilerConfig()
    paths = [Path(root) for root in roots]

    unit = link_specs(paths, config.encoding)
    if not unit.ok:
        logger.debug("Compilation stopped after linking: %d error(s)", len(unit.diagnostics))
        return CompileResult(diagnostics=unit.diagnostics)

    issues = validate_unit(unit, config)
    if issues:
        return CompileResult(diagnostics=issues)

    return CompileResult(ir=build_ir(unit))


def compile_spec(root: Path | str, config: CompilerConfig | None = None) -> CompileResult:
    """Compile a single root spec file and everything it imports."""
    return compile_specs([root], config)


def compile_project(manifest_path: Path | str) -> CompileResult:
    """
    Compile every root listed in a modelspec.toml manifest.

    Root paths are resolved against the manifest's directory.
    """
    manifest_path = Path(manifest_path).resolve()
    manifest = load_manifest(manifest_path)
    return compile_manifest(manifest, manifest_path.parent)


def compile_manifest(manifest: ProjectManifest, base_dir: Path) -> CompileResult:
    logger.debug("Compiling project '%s' (%d root(s))", manifest.name, len(manifest.roots))
    return compile_specs(list(manifest.root_paths(base_dir)), manifest.compiler)
