# logbook/db/log_repo.py
"""Repository functions for log persistence and retrieval."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from logbook.core.errors import BadRequestError, log_not_found
from logbook.db.models import ORIGIN_HUMAN, Attachment, Log, Tag
from logbook.utils.time import utc_now

logger = logging.getLogger(__name__)


def _with_relations(stmt):
    return stmt.options(selectinload(Log.tags), selectinload(Log.attachments))


async def find_matching(
    session: AsyncSession,
    predicate: ColumnElement[bool],
    order_by: Sequence,
    offset: int,
    limit: int,
) -> Tuple[List[Log], int]:
    """
    Rows for one page plus the total number of matches.

    The count ignores offset/limit so it can drive page metadata.
    """
    count_stmt = select(func.count()).select_from(Log).where(predicate)
    total = int((await session.execute(count_stmt)).scalar() or 0)

    stmt = _with_relations(select(Log).where(predicate)).order_by(*order_by).offset(offset).limit(limit)
    rows = (await session.execute(stmt)).scalars().all()
    return list(rows), total


async def find_by_id(session: AsyncSession, log_id: int) -> Optional[Log]:
    stmt = _with_relations(select(Log).where(Log.id == log_id)).execution_options(populate_existing=True)
    return (await session.execute(stmt)).scalars().first()


async def exists(session: AsyncSession, log_id: int) -> bool:
    stmt = select(Log.id).where(Log.id == log_id)
    return (await session.execute(stmt)).scalar() is not None


async def root_of(session: AsyncSession, log_id: int) -> Optional[int]:
    stmt = select(Log.root_log_id).where(Log.id == log_id)
    return (await session.execute(stmt)).scalar()


async def thread_of(session: AsyncSession, root_log_id: int) -> List[Log]:
    """Every log of a thread, ordered by id."""
    stmt = _with_relations(select(Log).where(Log.root_log_id == root_log_id)).order_by(Log.id.asc())
    return list((await session.execute(stmt)).scalars().all())


async def tags_of(session: AsyncSession, log_id: int) -> List[Tag]:
    stmt = select(Tag).join(Tag.logs).where(Log.id == log_id).order_by(Tag.id.asc())
    return list((await session.execute(stmt)).scalars().all())


async def attachments_of(session: AsyncSession, log_id: int) -> List[Attachment]:
    stmt = select(Attachment).where(Attachment.log_id == log_id).order_by(Attachment.id.asc())
    return list((await session.execute(stmt)).scalars().all())


async def create_log(
    session: AsyncSession,
    *,
    title: str,
    text: str,
    origin: str = ORIGIN_HUMAN,
    parent_log_id: Optional[int] = None,
    tag_ids: Sequence[int] = (),
) -> Log:
    """
    Insert a log and place it in its thread.

    Runs as one transaction: the parent lookup, the insert and the parent/root
    assignment commit together or not at all.

    Raises:
        BadRequestError: the parent log or one of the tags does not exist
    """
    async with session.begin():
        root_log_id = None
        if parent_log_id is not None:
            parent_stmt = select(Log.root_log_id).where(Log.id == parent_log_id).with_for_update()
            parent_root = (await session.execute(parent_stmt)).first()
            if parent_root is None:
                raise BadRequestError(f"Parent log with this id ({parent_log_id}) could not be found")
            root_log_id = parent_root.root_log_id

        tags: List[Tag] = []
        if tag_ids:
            found = (await session.execute(select(Tag).where(Tag.id.in_(tag_ids)))).scalars().all()
            by_id = {t.id: t for t in found}
            missing = [tid for tid in tag_ids if tid not in by_id]
            if missing:
                raise BadRequestError(f"Tag with this id ({missing[0]}) could not be found")
            tags = [by_id[tid] for tid in tag_ids]

        log = Log(
            title=title,
            text=text,
            origin=origin,
            created_at=utc_now(),
            parent_log_id=parent_log_id,
            root_log_id=root_log_id,
            tags=tags,
            attachments=[],
        )
        session.add(log)
        await session.flush()

        if parent_log_id is None:
            # a thread root points at itself
            log.parent_log_id = log.id
            log.root_log_id = log.id
            await session.flush()

        log_id = log.id

    logger.info("Created log %s (parent=%s, root=%s)", log_id, log.parent_log_id, log.root_log_id)

    created = await find_by_id(session, log_id)
    if created is None:
        raise log_not_found(log_id)
    return created

