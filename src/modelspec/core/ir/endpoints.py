"""
API endpoint types for the modelspec IR.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .fields import FieldSpec
from .location import SourceLocation

PATH_PARAM_PATTERN = re.compile(r":([A-Za-z_$][A-Za-z0-9_$]*)")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


def extract_path_params(path: str) -> list[str]:
    """Return ``:param`` names of a path in order of appearance."""
    return PATH_PARAM_PATTERN.findall(path)


class ResponseSpec(BaseModel):
    """
    A tagged response of an endpoint.

    Attributes:
        tag: Name after ``response.`` (``ok``, ``error``, ...)
        http_code: HTTP status code
        status: Status tag written in the response body
        message: Message template
        data: Shape of the response payload (possibly empty)
    """

    tag: str
    http_code: int
    status: str | None = None
    message: str | None = None
    data: list[FieldSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)


class EndpointSpec(BaseModel):
    """
    A flattened HTTP contract.

    ``params``, ``query`` and ``body`` are None when the endpoint does not
    declare that section.
    """

    name: str
    path: str
    method: HttpMethod
    params: list[FieldSpec] | None = None
    query: list[FieldSpec] | None = None
    body: list[FieldSpec] | None = None
    responses: list[ResponseSpec] = Field(default_factory=list)
    location: SourceLocation | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def path_params(self) -> list[str]:
        return extract_path_params(self.path)

    def get_response(self, tag: str) -> ResponseSpec | None:
        for response in self.responses:
            if response.tag == tag:
                return response
        return None
