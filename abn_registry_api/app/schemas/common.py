"""
Shared pydantic building blocks.

``CamelModel`` gives every schema snake_case attributes in Python and
camelCase keys on the wire.  The envelope models wrap payloads in the
``{"status": "success", ...}`` shape returned by every endpoint.
"""

from typing import Generic, List, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(BaseModel, Generic[T]):
    """Single object response."""

    status: str = "success"
    data: T


class ListEnvelope(BaseModel, Generic[T]):
    """Unpaginated list response."""

    status: str = "success"
    results: int
    data: List[T]


class PageEnvelope(BaseModel, Generic[T]):
    """Paginated list response.  ``pages`` is ``ceil(total / limit)``."""

    status: str = "success"
    results: int
    total: int
    page: int
    pages: int
    data: List[T]


class MessageEnvelope(BaseModel):
    status: str = "success"
    message: str
