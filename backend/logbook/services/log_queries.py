# logbook/services/log_queries.py
"""
Read-side orchestration for logs.

Validated descriptors go in, response schemas come out:
- `list_logs_page`: predicate builder + pager + repository
- `log_thread`: repository + thread assembler
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from logbook.core.errors import log_not_found
from logbook.db import log_repo
from logbook.schemas.logs import LogsResponse, LogTreeItem, list_meta, log_item, log_tree_item
from logbook.services.filters import build_predicate
from logbook.services.pager import order_by_clauses, page_meta
from logbook.services.thread_tree import assemble_thread
from logbook.services.validation import LogListQuery


async def list_logs_page(session: AsyncSession, query: LogListQuery) -> LogsResponse:
    predicate = build_predicate(query.filters)
    rows, total = await log_repo.find_matching(
        session,
        predicate,
        order_by_clauses(query.sort),
        offset=query.page.offset,
        limit=query.page.limit,
    )
    return LogsResponse(
        data=[log_item(r) for r in rows],
        meta=list_meta(page_meta(total, query.page)),
    )


async def log_thread(session: AsyncSession, log_id: int) -> LogTreeItem:
    """The whole thread `log_id` belongs to, rooted at the thread root."""
    root_log_id = await log_repo.root_of(session, log_id)
    if root_log_id is None:
        raise log_not_found(log_id)
    rows = await log_repo.thread_of(session, root_log_id)
    return log_tree_item(assemble_thread(rows, root_log_id))
