# logbook/db/attachment_repo.py
"""Repository functions for attachments."""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from logbook.db.models import Attachment
from logbook.utils.time import utc_now


async def find_attachment(session: AsyncSession, attachment_id: int) -> Optional[Attachment]:
    return await session.get(Attachment, attachment_id)


async def add_attachments(
    session: AsyncSession,
    log_id: int,
    files: Sequence[dict],
) -> List[Attachment]:
    """
    Insert attachment rows for one log in a single commit.

    Each item of `files` carries original_name, file_name, mime_type and size.
    """
    now = utc_now()
    rows = [
        Attachment(
            log_id=log_id,
            original_name=f["original_name"],
            file_name=f["file_name"],
            mime_type=f["mime_type"],
            size=f["size"],
            created_at=now,
        )
        for f in files
    ]
    session.add_all(rows)
    await session.commit()
    return rows
