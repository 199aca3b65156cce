# logbook/services/filters.py
"""
Typed log filters and the predicate builder.

Each filter variant is a small frozen dataclass that knows how to turn itself
into a SQLAlchemy boolean clause over `Log`. The builder ANDs whatever variants
a request produced; no variants means "match every log".

Tag filters are expressed as an id subquery on the association table rather than
a join, so a matching log still loads its full tag list.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple, Union

from sqlalchemy import and_, distinct, func, select, true
from sqlalchemy.sql.elements import ColumnElement

from logbook.db.models import Log, log_tags

TAG_OPERATION_AND = "and"
TAG_OPERATION_OR = "or"
TAG_OPERATIONS = (TAG_OPERATION_AND, TAG_OPERATION_OR)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class TitleFilter:
    """Case-insensitive substring match on the title."""
    text: str

    def to_clause(self) -> ColumnElement[bool]:
        return Log.title.ilike(f"%{_escape_like(self.text)}%", escape="\\")


@dataclass(frozen=True)
class DateRangeFilter:
    """Inclusive creation-time window; either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def to_clause(self) -> ColumnElement[bool]:
        clauses = []
        if self.start is not None:
            clauses.append(Log.created_at >= self.start)
        if self.end is not None:
            clauses.append(Log.created_at <= self.end)
        return and_(true(), *clauses)


@dataclass(frozen=True)
class TagFilter:
    """
    `and`: the log carries every requested tag.
    `or`: the log carries at least one of them.
    """
    tag_ids: Tuple[int, ...]
    operation: str = TAG_OPERATION_AND

    def to_clause(self) -> ColumnElement[bool]:
        wanted = set(self.tag_ids)
        tagged = select(log_tags.c.log_id).where(log_tags.c.tag_id.in_(sorted(wanted)))
        if self.operation == TAG_OPERATION_AND:
            tagged = tagged.group_by(log_tags.c.log_id).having(
                func.count(distinct(log_tags.c.tag_id)) == len(wanted)
            )
        return Log.id.in_(tagged)


@dataclass(frozen=True)
class ParentFilter:
    """Direct replies of a log (a root log is its own parent, so it matches too)."""
    parent_log_id: int

    def to_clause(self) -> ColumnElement[bool]:
        return Log.parent_log_id == self.parent_log_id


@dataclass(frozen=True)
class RootFilter:
    """Every log of a thread, the root included."""
    root_log_id: int

    def to_clause(self) -> ColumnElement[bool]:
        return Log.root_log_id == self.root_log_id


@dataclass(frozen=True)
class OriginFilter:
    origin: str

    def to_clause(self) -> ColumnElement[bool]:
        return Log.origin == self.origin


LogFilter = Union[TitleFilter, DateRangeFilter, TagFilter, ParentFilter, RootFilter, OriginFilter]


def build_predicate(filters: Sequence[LogFilter]) -> ColumnElement[bool]:
    """Combine filters with AND. An empty sequence matches every log."""
    clauses = [f.to_clause() for f in filters]
    if not clauses:
        return true()
    return and_(*clauses)
