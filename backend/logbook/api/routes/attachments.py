# logbook/api/routes/attachments.py
"""
/logs/{logId}/attachments

- GET  /logs/{logId}/attachments[?mimetype=]                 list, optionally by MIME type or group
- POST /logs/{logId}/attachments                             multipart upload
- GET  /logs/{logId}/attachments/{attachmentId}              metadata of one attachment
- GET  /logs/{logId}/attachments/{attachmentId}/content      the stored file

Uploads: every file field named `attachments` or `attachments.<n>` is stored.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from logbook.api.dependencies import decoded_query
from logbook.core.errors import ErrorCollector, FieldError, NotFoundError, ValidationFailure, log_not_found
from logbook.db import attachment_repo, log_repo
from logbook.db.models import Attachment
from logbook.db.session import get_session
from logbook.schemas.attachments import AttachmentResponse, AttachmentsResponse, attachment_item
from logbook.schemas.common import ErrorResponse
from logbook.services.attachments import (
    discard_stored,
    filter_by_mimetype,
    guess_mime_type,
    store_upload,
    stored_path,
)
from logbook.services.validation import (
    validate_attachment_query,
    validate_no_query,
    validate_path_id,
    validate_path_ids,
)

logger = logging.getLogger(__name__)

router = APIRouter(responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}})

_FIELD_RE = re.compile(r"^attachments(?:\.\d+)?$")


async def _attachment_of_log(session: AsyncSession, log_id: int, attachment_id: int) -> Attachment:
    attachment = await attachment_repo.find_attachment(session, attachment_id)
    if attachment is None:
        raise NotFoundError(f"Attachment with this id ({attachment_id}) could not be found")
    if attachment.log_id != log_id:
        raise NotFoundError(f"Log with this id ({log_id}) does not have Attachment with this id ({attachment_id})")
    return attachment


@router.get("/logs/{log_id}/attachments", response_model=AttachmentsResponse)
async def list_attachments(
    log_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    """
    Attachments of a log.

    Example:
      /logs/1/attachments?mimetype=image        every image/*
      /logs/1/attachments?mimetype=image/png    only image/png
    """
    errors = ErrorCollector()
    log_id_value = validate_path_id("logId", log_id, errors)
    mimetype = validate_attachment_query(query, errors)
    errors.raise_if_any()

    if not await log_repo.exists(session, log_id_value):
        raise log_not_found(log_id_value)

    rows = await log_repo.attachments_of(session, log_id_value)
    return AttachmentsResponse(data=[attachment_item(a) for a in filter_by_mimetype(rows, mimetype)])


@router.post("/logs/{log_id}/attachments", response_model=AttachmentsResponse, status_code=201)
async def upload_attachments(
    log_id: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
):
    """Store uploaded files and return the attachments that were created."""
    log_id_value = validate_path_id("logId", log_id)

    if not await log_repo.exists(session, log_id_value):
        raise log_not_found(log_id_value)

    form = await request.form()
    uploads = [
        value
        for key, value in form.multi_items()
        if isinstance(value, UploadFile) and _FIELD_RE.match(key)
    ]
    if not uploads:
        raise ValidationFailure([FieldError("body.attachments", "is required")])

    files = []
    try:
        for upload in uploads:
            content = await upload.read()
            original_name = upload.filename or "attachment"
            stored = await store_upload(original_name, content)
            files.append(
                {
                    "original_name": original_name,
                    "file_name": stored.file_name,
                    "mime_type": guess_mime_type(original_name, upload.content_type),
                    "size": stored.size,
                }
            )
        rows = await attachment_repo.add_attachments(session, log_id_value, files)
    except Exception:
        # no row references these files
        await discard_stored(f["file_name"] for f in files)
        raise

    logger.info("Stored %d attachment(s) for log %s", len(rows), log_id_value)
    return AttachmentsResponse(data=[attachment_item(a) for a in rows])


@router.get("/logs/{log_id}/attachments/{attachment_id}", response_model=AttachmentResponse)
async def get_attachment(
    log_id: str,
    attachment_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    ids = validate_path_ids(errors, logId=log_id, attachmentId=attachment_id)
    validate_no_query(query, errors)
    errors.raise_if_any()

    attachment = await _attachment_of_log(session, ids["logId"], ids["attachmentId"])
    return AttachmentResponse(data=attachment_item(attachment))


@router.get("/logs/{log_id}/attachments/{attachment_id}/content")
async def get_attachment_content(
    log_id: str,
    attachment_id: str,
    query: Dict[str, Any] = Depends(decoded_query),
    session: AsyncSession = Depends(get_session),
):
    errors = ErrorCollector()
    ids = validate_path_ids(errors, logId=log_id, attachmentId=attachment_id)
    validate_no_query(query, errors)
    errors.raise_if_any()

    attachment = await _attachment_of_log(session, ids["logId"], ids["attachmentId"])
    path = stored_path(attachment.file_name)
    if not path.is_file():
        logger.warning("Attachment %s is missing its file %s", attachment.id, path)
        raise NotFoundError(f"File of Attachment with this id ({attachment.id}) could not be found")

    return FileResponse(path, media_type=attachment.mime_type, filename=attachment.original_name)
