"""Core modelspec functionality: lexer, parser, linker, validator, IR and compilation pipeline."""

from . import ir
from .compiler import CompileResult, compile_project, compile_spec, compile_specs
from .errors import (
    CompilationError,
    Diagnostic,
    ErrorContext,
    IssueKind,
    LexError,
    LinkError,
    ModelSpecError,
    ParseError,
    ValidationError,
)
from .linker import ComposedUnit, link_specs
from .manifest import CompilerConfig, ProjectManifest, load_manifest
from .parser import parse_spec_file
from .validator import validate_unit

__all__ = [
    "ir",
    "CompileResult",
    "compile_project",
    "compile_spec",
    "compile_specs",
    "CompilationError",
    "Diagnostic",
    "ErrorContext",
    "IssueKind",
    "LexError",
    "LinkError",
    "ModelSpecError",
    "ParseError",
    "ValidationError",
    "ComposedUnit",
    "link_specs",
    "CompilerConfig",
    "ProjectManifest",
    "load_manifest",
    "parse_spec_file",
    "validate_unit",
]
