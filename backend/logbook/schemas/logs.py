# logbook/schemas/logs.py
"""
Schemas for the /logs endpoints.

A log always reports its full tag list, ordered by tag id, whatever tag filter
selected it.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Tuple

from pydantic import Field

from logbook.db.models import ORIGIN_HUMAN, TEXT_MIN_LENGTH, TITLE_MAX_LENGTH, TITLE_MIN_LENGTH, Log
from logbook.schemas.attachments import AttachmentItem, attachment_item
from logbook.schemas.common import MAX_SAFE_INTEGER, ApiModel, ListMeta, PageMeta, RequestModel
from logbook.schemas.tags import TagItem, tag_item
from logbook.services.pager import PageMeta as PageMetaValue
from logbook.services.thread_tree import ThreadNode
from logbook.utils.time import to_epoch_ms


class LogItem(ApiModel):
    """A single log entry."""
    id: int = Field(..., description="Log identifier")
    title: str
    text: str
    origin: str = Field(..., description="human | process")
    created_at: int = Field(..., description="Creation time, epoch milliseconds")
    parent_log_id: int = Field(..., description="Log this one replies to (itself for a thread root)")
    root_log_id: int = Field(..., description="Topmost log of the thread")
    tags: List[TagItem] = Field(default_factory=list)
    attachments: List[AttachmentItem] = Field(default_factory=list)


class LogTreeItem(LogItem):
    """A log with its replies, recursively."""
    children: List["LogTreeItem"] = Field(default_factory=list)


# Positive integer id as sent by clients
EntityId = Annotated[int, Field(gt=0, le=MAX_SAFE_INTEGER)]


class LogCreateRequest(RequestModel):
    """
    Body of POST /logs.

    Example:
    {"title": "Run 42 started", "text": "Beam injected", "parentLogId": 1, "origin": "human", "tags": [2, 5]}
    """
    title: str = Field(..., min_length=TITLE_MIN_LENGTH, max_length=TITLE_MAX_LENGTH)
    text: str = Field(..., min_length=TEXT_MIN_LENGTH)
    parent_log_id: Optional[EntityId] = Field(default=None, description="Log replied to; omit to start a thread")
    origin: Literal["human", "process"] = ORIGIN_HUMAN
    tags: Optional[List[EntityId]] = Field(default=None, description="Tag ids")

    @property
    def tag_ids(self) -> Tuple[int, ...]:
        """Requested tag ids without duplicates, in first-seen order."""
        return tuple(dict.fromkeys(self.tags or ()))


class LogResponse(ApiModel):
    data: LogItem


class LogsResponse(ApiModel):
    """
    Response for browsing logs.

    Example:
    {"data": [...], "meta": {"page": {"pageCount": 3, "totalCount": 25}}}
    """
    data: List[LogItem] = Field(default_factory=list)
    meta: ListMeta


class LogTreeResponse(ApiModel):
    data: LogTreeItem


def _log_fields(row: Log) -> dict:
    return dict(
        id=row.id,
        title=row.title,
        text=row.text,
        origin=row.origin,
        created_at=to_epoch_ms(row.created_at),
        parent_log_id=row.parent_log_id,
        root_log_id=row.root_log_id,
        tags=[tag_item(t) for t in row.tags],
        attachments=[attachment_item(a) for a in row.attachments],
    )


def log_item(row: Log) -> LogItem:
    return LogItem(**_log_fields(row))


def log_tree_item(node: ThreadNode[Log]) -> LogTreeItem:
    return LogTreeItem(
        **_log_fields(node.log),
        children=[log_tree_item(child) for child in node.children],
    )


def list_meta(meta: PageMetaValue) -> ListMeta:
    return ListMeta(page=PageMeta(page_count=meta.page_count, total_count=meta.total_count))
