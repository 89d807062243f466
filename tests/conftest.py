"""Shared pytest fixtures for modelspec tests."""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def specs_dir(fixtures_dir: Path) -> Path:
    """Return path to the spec fixtures (commons.go, data/, endpoint/)."""
    return fixtures_dir / "specs"


@pytest.fixture
def write_specs(tmp_path: Path) -> Callable[..., Path]:
    """
    Return a helper that writes spec files under tmp_path.

    Usage:
        root = write_specs({"a.go": "...", "lib/b.go": "..."})

    Returns the path of the first file written.
    """

    def _write(files: dict[str, str]) -> Path:
        first = None
        for name, text in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(text), encoding="utf-8")
            first = first or path
        assert first is not None
        return first

    return _write
