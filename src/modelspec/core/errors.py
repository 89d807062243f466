"""
Error types for modelspec lexing, parsing, linking, and validation.

Fatal stage errors are raised as exceptions. Every exception converts to a
``Diagnostic`` so callers always receive one uniform list.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class IssueKind(str, Enum):
    """Diagnostic kinds reported by the compiler."""

    LEX = "LexError"
    PARSE = "ParseError"
    IMPORT_CYCLE = "ImportCycleError"
    IMPORT_NOT_FOUND = "ImportNotFoundError"
    UNKNOWN_GROUP = "UnknownGroupError"
    SPREAD_CYCLE = "SpreadCycleError"
    TYPE_MISMATCH = "TypeMismatchError"
    DUPLICATE_FIELD = "DuplicateFieldError"
    DUPLICATE_DECLARATION = "DuplicateDeclarationError"
    UNKNOWN_CONSTRAINT = "UnknownConstraintError"
    UNKNOWN_TYPE = "UnknownTypeError"
    MALFORMED_ANNOTATION = "MalformedAnnotationError"
    PATH_PARAM_MISMATCH = "PathParamMismatchError"
    MISSING_RESPONSE = "MissingResponseError"
    INVALID_METHOD = "InvalidMethodError"
    INVALID_STATUS_CODE = "InvalidStatusCodeError"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single reportable problem.

    Attributes:
        file: Source file the problem was found in
        line: Line number (1-indexed, 0 when unknown)
        column: Column number (1-indexed, 0 when unknown)
        kind: Taxonomy entry
        message: Human-readable description
    """

    file: str
    line: int
    column: int
    kind: IssueKind
    message: str

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.kind.value}: {self.message}"


@dataclass
class ErrorContext:
    """
    Source location of an error.

    Attributes:
        file: Path to the source file where error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        snippet: Optional source line showing the error location
    """

    file: Path
    line: int
    column: int
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "mood.go:10:5"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.snippet:
            marker = " " * (self.column - 1) + "^^^"
            return f"{location}\n    {self.snippet}\n    {marker}"
        return location


class ModelSpecError(Exception):
    """Base exception for all modelspec errors."""

    kind: IssueKind = IssueKind.PARSE

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message

    def to_diagnostic(self) -> Diagnostic:
        if self.context:
            return Diagnostic(
                file=str(self.context.file),
                line=self.context.line,
                column=self.context.column,
                kind=self.kind,
                message=self.message,
            )
        return Diagnostic(file="", line=0, column=0, kind=self.kind, message=self.message)


class LexError(ModelSpecError):
    """
    Raised when spec text contains a malformed token.

    Examples:
    - Unterminated string literal
    - Character outside the language alphabet
    """

    kind = IssueKind.LEX

    def __init__(self, message: str, context: ErrorContext, offset: int):
        self.offset = offset
        super().__init__(message, context)


class ParseError(ModelSpecError):
    """
    Raised when a token stream does not match the grammar.

    The parser does not recover; the first error aborts the file.
    """

    kind = IssueKind.PARSE

    def __init__(
        self,
        message: str,
        context: ErrorContext,
        expected: str | None = None,
        found: str | None = None,
    ):
        self.expected = expected
        self.found = found
        super().__init__(message, context)


class LinkError(ModelSpecError):
    """
    Raised when spec files cannot be composed together.

    Examples:
    - Missing import files
    - Circular imports
    - Spread targets that cannot be resolved
    """

    kind = IssueKind.IMPORT_NOT_FOUND


class ImportNotFoundError(LinkError):
    kind = IssueKind.IMPORT_NOT_FOUND


class ImportCycleError(LinkError):
    """Raised when the import graph contains a cycle; ``chain`` names it end to end."""

    kind = IssueKind.IMPORT_CYCLE

    def __init__(self, chain: list[Path], context: ErrorContext | None = None):
        self.chain = chain
        names = " -> ".join(str(p) for p in chain)
        super().__init__(f"Import cycle detected: {names}", context)


class UnknownGroupError(LinkError):
    kind = IssueKind.UNKNOWN_GROUP

    def __init__(self, name: str, context: ErrorContext | None = None):
        self.name = name
        super().__init__(f"Unknown field group '{name}' in spread", context)


class SpreadCycleError(LinkError):
    kind = IssueKind.SPREAD_CYCLE

    def __init__(self, chain: list[str], context: ErrorContext | None = None):
        self.chain = chain
        super().__init__(f"Field group spreads itself: {' -> '.join(chain)}", context)


class ValidationError(ModelSpecError):
    """
    Raised when a composed spec set fails semantic validation.

    Carries every issue found, not just the first.
    """

    def __init__(self, issues: list[Diagnostic]):
        self.issues = issues
        summary = "\n".join(f"  - {issue.format()}" for issue in issues)
        super().__init__(f"Validation failed with {len(issues)} issue(s):\n{summary}")

    def to_diagnostic(self) -> Diagnostic:
        raise TypeError("ValidationError carries several diagnostics; use .issues")


class CompilationError(ModelSpecError):
    """Raised by ``CompileResult.raise_for_errors`` when a run produced diagnostics."""

    def __init__(self, diagnostics: list[Diagnostic]):
        self.diagnostics = diagnostics
        summary = "\n".join(f"  - {d.format()}" for d in diagnostics)
        super().__init__(f"Compilation failed with {len(diagnostics)} error(s):\n{summary}")

    def to_diagnostic(self) -> Diagnostic:
        raise TypeError("CompilationError carries several diagnostics; use .diagnostics")


def make_lex_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    offset: int,
    snippet: str | None = None,
) -> LexError:
    """Helper to create a LexError with context."""
    context = ErrorContext(file=file, line=line, column=column, snippet=snippet)
    return LexError(message, context, offset)


def make_parse_error(
    message: str,
    file: Path,
    line: int,
    column: int,
    expected: str | None = None,
    found: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source file path
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        expected: What the grammar required at this point
        found: What the token stream held instead

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column)
    return ParseError(message, context, expected=expected, found=found)


def make_issue(
    kind: IssueKind,
    message: str,
    file: Path | str,
    line: int,
    column: int,
) -> Diagnostic:
    """Helper to create a validation Diagnostic."""
    return Diagnostic(file=str(file), line=line, column=column, kind=kind, message=message)
