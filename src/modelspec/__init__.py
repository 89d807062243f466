"""
modelspec - compiler for a declarative data-model and API-endpoint schema language.

Parses spec files, resolves imports and field-group spreads, validates
constraints, and produces an immutable IR for code generators.
"""

from __future__ import annotations

import re
from importlib.metadata import version as _metadata_version
from pathlib import Path as _Path

# Re-export commonly used types for convenience
from .core import ir
from .core.compiler import CompileResult, compile_spec, compile_specs
from .core.errors import LinkError, ModelSpecError, ParseError, ValidationError


def _get_version() -> str:
    """Get version from pyproject.toml (editable) or importlib.metadata (installed)."""
    pyproject = _Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        content = pyproject.read_text()
        if match := re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE):
            return match.group(1)

    try:
        return _metadata_version("modelspec")
    except Exception:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "__version__",
    "ir",
    "CompileResult",
    "compile_spec",
    "compile_specs",
    "ModelSpecError",
    "ParseError",
    "LinkError",
    "ValidationError",
]
