# logbook/services/pager.py
"""
Sorting and paging for list endpoints.

- Sort keys apply in the order the client gave them.
- `id ASC` is appended as a tie-breaker so equal keys never reorder between calls.
- With no sort keys, logs come newest first (`id DESC`).
- `page_count` is 0 for an empty result set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence

from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import UnaryExpression

from logbook.db.models import Log

SORT_ASC = "asc"
SORT_DESC = "desc"
SORT_DIRECTIONS = (SORT_ASC, SORT_DESC)

SORTABLE_FIELDS: Dict[str, InstrumentedAttribute] = {
    "id": Log.id,
    "title": Log.title,
    "origin": Log.origin,
    "createdAt": Log.created_at,
}


@dataclass(frozen=True)
class SortKey:
    field: str  # public name, one of SORTABLE_FIELDS
    direction: str = SORT_ASC


DEFAULT_SORT = (SortKey("id", SORT_DESC),)


@dataclass(frozen=True)
class PageRequest:
    offset: int
    limit: int


@dataclass(frozen=True)
class PageMeta:
    page_count: int
    total_count: int


def order_by_clauses(sort_keys: Sequence[SortKey]) -> List[UnaryExpression]:
    keys = list(sort_keys) or list(DEFAULT_SORT)
    clauses = []
    for key in keys:
        column = SORTABLE_FIELDS[key.field]
        clauses.append(column.desc() if key.direction == SORT_DESC else column.asc())
    if all(key.field != "id" for key in keys):
        clauses.append(Log.id.asc())
    return clauses


def page_count(total_count: int, limit: int) -> int:
    """ceil(total / limit); 0 when nothing matched."""
    if total_count <= 0:
        return 0
    return -(-total_count // limit)


def page_meta(total_count: int, page: PageRequest) -> PageMeta:
    return PageMeta(page_count=page_count(total_count, page.limit), total_count=total_count)
