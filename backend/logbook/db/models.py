# logbook/db/models.py
"""
SQLAlchemy ORM models for the logbook backend.

Notes:
- Timestamps are stored as naive UTC datetimes (timezone-less) truncated to
  milliseconds. The API exposes them as epoch milliseconds.
- Threads are index-based: `parent_log_id` and `root_log_id` are plain foreign
  keys into `logs`. A thread is rebuilt on read, never held as an object graph.
- Both thread columns are nullable at the database level only because a root
  log learns its own id at insert time; `log_repo.create_log` fills them in the
  same transaction.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

ORIGIN_HUMAN = "human"
ORIGIN_PROCESS = "process"
LOG_ORIGINS = (ORIGIN_HUMAN, ORIGIN_PROCESS)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 140
TEXT_MIN_LENGTH = 3


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


log_tags = Table(
    "log_tags",
    Base.metadata,
    Column("log_id", Integer, ForeignKey("logs.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True, index=True),
)


class Log(Base):
    """A single logbook entry, either a thread root or a reply."""

    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    origin: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=ORIGIN_HUMAN)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True, nullable=False)

    parent_log_id: Mapped[Optional[int]] = mapped_column(ForeignKey("logs.id"), index=True, nullable=True)
    root_log_id: Mapped[Optional[int]] = mapped_column(ForeignKey("logs.id"), index=True, nullable=True)

    # lazy="raise": async sessions must load these explicitly (selectinload)
    tags: Mapped[List["Tag"]] = relationship(
        secondary=log_tags,
        back_populates="logs",
        order_by="Tag.id",
        lazy="raise",
    )
    attachments: Mapped[List["Attachment"]] = relationship(
        back_populates="log",
        order_by="Attachment.id",
        lazy="raise",
    )


class Tag(Base):
    """A label shared by many logs."""

    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(String(64), nullable=False)

    logs: Mapped[List[Log]] = relationship(
        secondary=log_tags,
        back_populates="tags",
        lazy="raise",
    )


class Attachment(Base):
    """
    A file uploaded against a log.

    `file_name` is the name the file is stored under inside ATTACHMENTS_DIR;
    `original_name` is what the client uploaded.
    """

    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    log_id: Mapped[int] = mapped_column(ForeignKey("logs.id", ondelete="CASCADE"), index=True, nullable=False)

    original_name: Mapped[str] = mapped_column(String(256), nullable=False)
    file_name: Mapped[str] = mapped_column(String(256), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)

    log: Mapped[Log] = relationship(back_populates="attachments", lazy="raise")
