"""Tests for modelspec.toml loading."""

from __future__ import annotations

import textwrap
from pathlib import Path

from modelspec.core.manifest import CompilerConfig, ProjectManifest, load_manifest

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MINIMAL_TOML = textwrap.dedent("""\
    [project]
    name = "shop"
    roots = ["specs/data/mood.go", "specs/endpoint/login.endpoint.go"]
""")


def _write_toml(tmp_path: Path, extra: str = "") -> Path:
    p = tmp_path / "modelspec.toml"
    p.write_text(_MINIMAL_TOML + extra, encoding="utf-8")
    return p


# ---------------------------------------------------------------------------
# load_manifest tests
# ---------------------------------------------------------------------------


class TestLoadManifest:
    def test_project_table(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write_toml(tmp_path))
        assert manifest.name == "shop"
        assert manifest.roots == ["specs/data/mood.go", "specs/endpoint/login.endpoint.go"]

    def test_compiler_defaults(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write_toml(tmp_path))
        assert manifest.compiler == CompilerConfig()
        assert manifest.compiler.encoding == "utf-8"
        assert manifest.compiler.allow_enum_with_flags is True

    def test_compiler_table(self, tmp_path: Path) -> None:
        path = _write_toml(
            tmp_path,
            textwrap.dedent("""\

                [compiler]
                encoding = "latin-1"
                allow_enum_with_flags = false
            """),
        )
        manifest = load_manifest(path)
        assert manifest.compiler.encoding == "latin-1"
        assert manifest.compiler.allow_enum_with_flags is False

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "modelspec.toml"
        path.write_text("", encoding="utf-8")
        manifest = load_manifest(path)
        assert manifest.name == "unnamed"
        assert manifest.roots == []


class TestRootPaths:
    def test_roots_resolve_against_base_dir(self, tmp_path: Path) -> None:
        manifest = ProjectManifest(name="shop", roots=["specs/a.go", "../b.go"])
        assert manifest.root_paths(tmp_path / "project") == [
            (tmp_path / "project" / "specs" / "a.go").resolve(),
            (tmp_path / "b.go").resolve(),
        ]
