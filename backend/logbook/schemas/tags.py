# logbook/schemas/tags.py
"""Schemas for tag payloads."""

from __future__ import annotations

from typing import List

from pydantic import Field

from logbook.db.models import Tag
from logbook.schemas.common import ApiModel


class TagItem(ApiModel):
    id: int = Field(..., description="Tag identifier")
    text: str = Field(..., description="Tag label")


class TagResponse(ApiModel):
    data: TagItem


class TagsResponse(ApiModel):
    data: List[TagItem] = Field(default_factory=list)


def tag_item(row: Tag) -> TagItem:
    return TagItem(id=row.id, text=row.text)
