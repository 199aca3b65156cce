# logbook/schemas/attachments.py
"""Schemas for attachment payloads."""

from __future__ import annotations

from typing import List

from pydantic import Field

from logbook.db.models import Attachment
from logbook.schemas.common import ApiModel
from logbook.utils.time import to_epoch_ms


class AttachmentItem(ApiModel):
    """
    Attachment metadata.

    Example:
    {"id": 3, "logId": 1, "originalName": "beam.png", "fileName": "9f2c...png",
     "mimeType": "image/png", "size": 48213, "createdAt": 1577833200000}
    """
    id: int
    log_id: int
    original_name: str = Field(..., description="Filename as uploaded")
    file_name: str = Field(..., description="Stored file reference")
    mime_type: str
    size: int = Field(..., ge=0, description="Size in bytes")
    created_at: int = Field(..., description="Upload time, epoch milliseconds")


class AttachmentResponse(ApiModel):
    data: AttachmentItem


class AttachmentsResponse(ApiModel):
    data: List[AttachmentItem] = Field(default_factory=list)


def attachment_item(row: Attachment) -> AttachmentItem:
    return AttachmentItem(
        id=row.id,
        log_id=row.log_id,
        original_name=row.original_name,
        file_name=row.file_name,
        mime_type=row.mime_type,
        size=row.size,
        created_at=to_epoch_ms(row.created_at),
    )
