import tomllib
from dataclasses import dataclass, field
from pathlib import Path

MANIFEST_FILENAME = "modelspec.toml"


@dataclass
class CompilerConfig:
    """Compiler settings from the ``[compiler]`` table."""

    encoding: str = "utf-8"
    allow_enum_with_flags: bool = True  # e.g. status string<indexed>(draft|active)


@dataclass
class ProjectManifest:
    """
    Project manifest loaded from modelspec.toml.

    Examples in modelspec.toml:

        [project]
        name = "shop"
        roots = ["specs/data/mood.go", "specs/endpoint/login.endpoint.go"]

        [compiler]
        encoding = "utf-8"
        allow_enum_with_flags = true
    """

    name: str
    roots: list[str] = field(default_factory=list)
    compiler: CompilerConfig = field(default_factory=CompilerConfig)

    def root_paths(self, base_dir: Path) -> list[Path]:
        """Resolve root spec paths relative to the manifest directory."""
        return [(base_dir / root).resolve() for root in self.roots]


def load_manifest(path: Path) -> ProjectManifest:
    data = tomllib.loads(path.read_text(encoding="utf-8"))

    project = data.get("project", {})
    compiler_data = data.get("compiler", {})

    compiler_config = CompilerConfig(
        encoding=compiler_data.get("encoding", "utf-8"),
        allow_enum_with_flags=compiler_data.get("allow_enum_with_flags", True),
    )

    return ProjectManifest(
        name=project.get("name", "unnamed"),
        roots=project.get("roots", []),
        compiler=compiler_config,
    )
