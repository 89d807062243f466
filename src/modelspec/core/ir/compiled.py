"""
Top-level compiled output of the modelspec core.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .domain import EntitySpec
from .endpoints import EndpointSpec


class CompiledSpec(BaseModel):
    """
    The immutable IR handed to generators.

    Mapping order is declaration order of first occurrence across the import
    closure, root file first, so serialization is stable across runs.

    Attributes:
        entities: Entity name to flattened entity
        endpoints: Endpoint name to flattened endpoint
        files: Resolved spec files of the compilation unit, in load order
    """

    entities: dict[str, EntitySpec] = Field(default_factory=dict)
    endpoints: dict[str, EndpointSpec] = Field(default_factory=dict)
    files: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def get_entity(self, name: str) -> EntitySpec | None:
        return self.entities.get(name)

    def get_endpoint(self, name: str) -> EndpointSpec | None:
        return self.endpoints.get(name)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def to_json(self, indent: int | None = 2) -> str:
        return self.model_dump_json(indent=indent)
