# logbook/db/tag_repo.py
"""Repository functions for tags."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from logbook.db.models import Tag


async def list_tags(session: AsyncSession) -> List[Tag]:
    stmt = select(Tag).order_by(Tag.id.asc())
    return list((await session.execute(stmt)).scalars().all())


async def find_tag(session: AsyncSession, tag_id: int) -> Optional[Tag]:
    return await session.get(Tag, tag_id)
