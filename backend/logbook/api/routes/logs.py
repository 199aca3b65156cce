# logbook/api/routes/logs.py
"""
/logs

- GET  /logs                 browse with filters, sorting and pagination
- POST /logs                 create a log (optionally as a reply)
- GET  /logs/{logId}         a single log
- GET  /logs/{logId}/tags    tags of a log
- GET  /logs/{logId}/tree    the whole thread the log belongs to

Supported list parameters (bracket notation):
  filter[title], filter[created][from|to], filter[tag][values|operation],
  filter[parentLog], filter[rootLog], filter[origin],
  page[offset], page[limit], sort[<field>]=asc|desc
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from logbook.api.dependencies import decoded_query
from logbook.core.errors import ErrorCollector, log_not_found
from logbook.db import log_repo
from logbook.db.session import get_session
from logbook.schemas.common import ErrorResponse
from logbook.schemas.logs import LogResponse, LogsResponse, LogTreeResponse, log_item
from logbook.schemas.tags import TagsResponse, tag_item
from logbook.services.log_queries import list_logs_page, log_thread
from logbook.services.validation import (
    validate_log_create,
    validate_log_list_query,
    validate_no_query,
    validate_path_id,
)

router = APIRouter(responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})


@router.get("/logs", response_model=LogsResponse)
async def list_logs(
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    """
    Retrieve logs matching every given filter.

    Example:
      /logs?filter[tag][values]=1,2&filter[tag][operation]=or&page[limit]=20&sort[id]=asc
    """
    params = validate_log_list_query(query)
    return await list_logs_page(session, params)


@router.post("/logs", response_model=LogResponse, status_code=201)
async def create_log(
    body: Any = Body(default=None),
    session: AsyncSession = Depends(get_session),
):
    """
    Create a log.

    Without `parentLogId` the log starts a new thread; with one it joins the
    parent's thread.
    """
    payload = validate_log_create(body)
    row = await log_repo.create_log(
        session,
        title=payload.title,
        text=payload.text,
        origin=payload.origin,
        parent_log_id=payload.parent_log_id,
        tag_ids=payload.tag_ids,
    )
    return LogResponse(data=log_item(row))


@router.get("/logs/{log_id}", response_model=LogResponse)
async def get_log(
    log_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    log_id_value = validate_path_id("logId", log_id, errors)
    validate_no_query(query, errors)
    errors.raise_if_any()

    row = await log_repo.find_by_id(session, log_id_value)
    if row is None:
        raise log_not_found(log_id_value)
    return LogResponse(data=log_item(row))


@router.get("/logs/{log_id}/tags", response_model=TagsResponse)
async def get_log_tags(
    log_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    log_id_value = validate_path_id("logId", log_id, errors)
    validate_no_query(query, errors)
    errors.raise_if_any()

    if not await log_repo.exists(session, log_id_value):
        raise log_not_found(log_id_value)
    tags = await log_repo.tags_of(session, log_id_value)
    return TagsResponse(data=[tag_item(t) for t in tags])


@router.get("/logs/{log_id}/tree", response_model=LogTreeResponse)
async def get_log_tree(
    log_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    """Same tree for every member of a thread."""
    errors = ErrorCollector()
    log_id_value = validate_path_id("logId", log_id, errors)
    validate_no_query(query, errors)
    errors.raise_if_any()

    tree = await log_thread(session, log_id_value)
    return LogTreeResponse(data=tree)
