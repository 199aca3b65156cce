# logbook/schemas/common.py
"""
Shared schema pieces.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Largest integer a JSON client can send without losing precision.
MAX_SAFE_INTEGER = 2**53 - 1


class ApiModel(BaseModel):
    """Base for every response model."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RequestModel(BaseModel):
    """Base for request bodies: camelCase keys only, unknown keys rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=False, extra="forbid")


class PageMeta(ApiModel):
    page_count: int = Field(..., ge=0, description="ceil(totalCount / limit); 0 when nothing matched")
    total_count: int = Field(..., ge=0, description="Total matching entries before pagination")


class ListMeta(ApiModel):
    page: PageMeta


class ErrorSource(ApiModel):
    pointer: str = Field(..., description="Path of the offending field, e.g. /data/attributes/query/page/limit")


class ErrorItem(ApiModel):
    """
    A single error.

    Validation errors carry `detail` and `source`; other errors only a title.
    """
    status: str
    title: str
    detail: Optional[str] = None
    source: Optional[ErrorSource] = None


class ErrorResponse(ApiModel):
    errors: List[ErrorItem] = Field(default_factory=list)
