# logbook/services/attachments.py
"""
Attachment helpers: MIME filtering and on-disk storage of uploads.

MIME filter:
- no query          -> everything
- "image/png"       -> exact match
- "image"           -> every "image/*"
"""

from __future__ import annotations

import logging
import mimetypes
import os
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, TypeVar

from starlette.concurrency import run_in_threadpool

from logbook.core.config import settings

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class HasMimeType(Protocol):
    mime_type: str


A = TypeVar("A", bound=HasMimeType)


def mime_group(mime_type: str) -> str:
    return (mime_type or "").split("/", 1)[0]


def filter_by_mimetype(attachments: Iterable[A], mimetype: Optional[str]) -> List[A]:
    items = list(attachments)
    if not mimetype:
        return items
    query = mimetype.strip().lower()
    if "/" in query:
        return [a for a in items if (a.mime_type or "").lower() == query]
    return [a for a in items if mime_group(a.mime_type).lower() == query]


def guess_mime_type(filename: str, declared: Optional[str]) -> str:
    """Prefer the client's Content-Type; fall back to the extension."""
    declared = (declared or "").strip().lower()
    if declared and declared != DEFAULT_MIME_TYPE:
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or declared or DEFAULT_MIME_TYPE


@dataclass(frozen=True)
class StoredFile:
    file_name: str  # name inside the attachments directory
    size: int


def attachments_dir() -> Path:
    return Path(settings.ATTACHMENTS_DIR)


def stored_path(file_name: str) -> Path:
    # stored names are generated here and never contain separators
    return attachments_dir() / os.path.basename(file_name)


def _write_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


async def store_upload(original_name: str, content: bytes) -> StoredFile:
    """Write upload bytes under a random name, keeping the original extension."""
    suffix = Path(original_name or "").suffix.lower()
    file_name = f"{uuid.uuid4().hex}{suffix}"
    path = stored_path(file_name)
    await run_in_threadpool(_write_file, path, content)
    logger.debug("Stored %s as %s (%d bytes)", original_name, path, len(content))
    return StoredFile(file_name=file_name, size=len(content))


def _remove_files(paths: List[Path]) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


async def discard_stored(file_names: Iterable[str]) -> None:
    """Remove stored uploads that never made it into the database."""
    paths = [stored_path(name) for name in file_names]
    if paths:
        await run_in_threadpool(_remove_files, paths)
        logger.warning("Discarded %d stored upload(s)", len(paths))
