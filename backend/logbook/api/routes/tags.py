# logbook/api/routes/tags.py
"""
/tags

- GET /tags                  every tag
- GET /tags/{tagId}          a single tag
- GET /tags/{tagId}/logs     logs carrying the tag; accepts the same filter/page/sort
                             parameters as GET /logs
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logbook.api.dependencies import decoded_query
from logbook.core.errors import ErrorCollector, NotFoundError
from logbook.db import tag_repo
from logbook.db.session import get_session
from logbook.schemas.common import ErrorResponse
from logbook.schemas.logs import LogsResponse
from logbook.schemas.tags import TagResponse, TagsResponse, tag_item
from logbook.services.filters import TagFilter
from logbook.services.log_queries import list_logs_page
from logbook.services.validation import validate_log_list_query, validate_no_query, validate_path_id

router = APIRouter(responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})


def _tag_not_found(tag_id: int) -> NotFoundError:
    return NotFoundError(f"Tag with this id ({tag_id}) could not be found")


@router.get("/tags", response_model=TagsResponse)
async def list_tags(
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    validate_no_query(query)
    tags = await tag_repo.list_tags(session)
    return TagsResponse(data=[tag_item(t) for t in tags])


@router.get("/tags/{tag_id}", response_model=TagResponse)
async def get_tag(
    tag_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    tag_id_value = validate_path_id("tagId", tag_id, errors)
    validate_no_query(query, errors)
    errors.raise_if_any()

    tag = await tag_repo.find_tag(session, tag_id_value)
    if tag is None:
        raise _tag_not_found(tag_id_value)
    return TagResponse(data=tag_item(tag))


@router.get("/tags/{tag_id}/logs", response_model=LogsResponse)
async def get_tag_logs(
    tag_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    tag_id_value = validate_path_id("tagId", tag_id, errors)
    params = validate_log_list_query(query, errors=errors)
    errors.raise_if_any()

    if await tag_repo.find_tag(session, tag_id_value) is None:
        raise _tag_not_found(tag_id_value)
    return await list_logs_page(session, params.with_filter(TagFilter(tag_ids=(tag_id_value,))))
