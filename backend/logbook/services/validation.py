# logbook/services/validation.py
"""
Request validation.

Raw request input (decoded query strings, path segments, JSON bodies) is checked
here and turned into typed descriptors. Every field is checked independently and
all problems are collected before a single `ValidationFailure` is raised. Pass a
shared `ErrorCollector` as `errors=` to report path and query problems together;
the caller then raises.

JSON bodies go through pydantic request models; their errors are rewritten into
the same wording by `field_errors`.

Error wording is stable; clients and tests match on it:

    "query.filter.title" is not allowed to be empty
    "query.filter.created.to" must be less than or equal to "2024-05-01T23:59:59.999Z"
    "query.filter.created.to" must be larger than or equal to "ref:from"
    "query.filter.origin" must be one of [human, process]
    "query.page.limit" must be larger than or equal to 1
    "params.logId" must be a number | must be a positive number | must be an integer
    "body.title" is required
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from logbook.core.config import settings
from logbook.core.errors import ErrorCollector, FieldError, ValidationFailure, collecting
from logbook.db.models import LOG_ORIGINS
from logbook.schemas.common import MAX_SAFE_INTEGER
from logbook.schemas.logs import LogCreateRequest
from logbook.services.filters import (
    TAG_OPERATION_AND,
    TAG_OPERATIONS,
    DateRangeFilter,
    LogFilter,
    OriginFilter,
    ParentFilter,
    RootFilter,
    TagFilter,
    TitleFilter,
)
from logbook.services.pager import SORT_DIRECTIONS, SORTABLE_FIELDS, PageRequest, SortKey
from logbook.utils.time import end_of_today, from_epoch_ms, iso_ms_z, to_epoch_ms

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_EXPECTED_RE = re.compile(r"'([^']*)'")

LIST_QUERY_KEYS = ("filter", "page", "sort")
FILTER_KEYS = ("title", "created", "tag", "parentLog", "rootLog", "origin")
CREATED_KEYS = ("from", "to")
TAG_KEYS = ("values", "operation")
PAGE_KEYS = ("offset", "limit")


@dataclass(frozen=True)
class LogListQuery:
    """Everything GET /logs needs: filters, sort keys and the page window."""
    filters: Tuple[LogFilter, ...] = ()
    sort: Tuple[SortKey, ...] = ()
    page: PageRequest = field(default_factory=lambda: PageRequest(offset=0, limit=settings.DEFAULT_PAGE_LIMIT))

    def with_filter(self, extra: LogFilter) -> "LogListQuery":
        return LogListQuery(filters=self.filters + (extra,), sort=self.sort, page=self.page)


# ----------------------------
# Scalar helpers
# ----------------------------
def _one_of(options: Iterable[str]) -> str:
    return "must be one of [" + ", ".join(options) + "]"


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Numbers and numeric strings become Decimals; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else None
    if isinstance(value, str):
        candidate = value.strip()
        if _NUMBER_RE.match(candidate):
            try:
                return Decimal(candidate)
            except InvalidOperation:
                return None
    return None


def _is_unsafe(number: Decimal) -> bool:
    # copy_abs ignores the context, so huge exponents neither overflow nor expand
    return number.copy_abs() > MAX_SAFE_INTEGER


def _integer(
    value: Any,
    label: str,
    errors: ErrorCollector,
    *,
    positive: bool = False,
    minimum: Optional[int] = None,
) -> Optional[int]:
    number = _to_decimal(value)
    if number is None:
        errors.add(label, "must be a number")
        return None
    if _is_unsafe(number):
        errors.add(label, "must be a safe number")
        return None
    if number != number.to_integral_value():
        errors.add(label, "must be an integer")
        return None
    if positive and number <= 0:
        errors.add(label, "must be a positive number")
        return None
    if minimum is not None and number < minimum:
        errors.add(label, f"must be larger than or equal to {minimum}")
        return None
    return int(number)


def _timestamp(value: Any, label: str, errors: ErrorCollector) -> Optional[int]:
    """Epoch milliseconds; fractions are truncated."""
    number = _to_decimal(value)
    if number is None:
        errors.add(label, "must be in timestamp or number of milliseconds format")
        return None
    if _is_unsafe(number):
        errors.add(label, "must be a valid date")
        return None
    ms = int(number)
    try:
        from_epoch_ms(ms)
    except OverflowError:
        errors.add(label, "must be a valid date")
        return None
    return ms


def _string(value: Any, label: str, errors: ErrorCollector) -> Optional[str]:
    if not isinstance(value, str):
        errors.add(label, "must be a string")
        return None
    return value


def _object(
    value: Any,
    label: str,
    errors: ErrorCollector,
    allowed: Iterable[str],
) -> Optional[Mapping[str, Any]]:
    """Check that `value` is a mapping and flag keys outside `allowed`."""
    if value is None:
        return None
    if not isinstance(value, Mapping):
        errors.add(label, "must be of type object")
        return None
    allowed = tuple(allowed)
    for key in value:
        if key not in allowed:
            errors.add(f"{label}.{key}", "is not allowed")
    return value


# ----------------------------
# Path parameters
# ----------------------------
def validate_path_ids(errors: Optional[ErrorCollector] = None, **params: str) -> Dict[str, int]:
    """
    Validate positive integer path parameters.

    validate_path_ids(logId="12", attachmentId="3") -> {"logId": 12, "attachmentId": 3}
    """
    parsed: Dict[str, int] = {}
    with collecting(errors) as collector:
        for name, raw in params.items():
            value = _integer(raw, f"params.{name}", collector, positive=True)
            if value is not None:
                parsed[name] = value
    return parsed


def validate_path_id(name: str, raw: str, errors: Optional[ErrorCollector] = None) -> Optional[int]:
    return validate_path_ids(errors, **{name: raw}).get(name)


# ----------------------------
# Query strings
# ----------------------------
def validate_no_query(raw: Mapping[str, Any], errors: Optional[ErrorCollector] = None) -> None:
    """For endpoints that take no query parameters at all."""
    with collecting(errors) as collector:
        _object(raw, "query", collector, ())


def validate_attachment_query(raw: Mapping[str, Any], errors: Optional[ErrorCollector] = None) -> Optional[str]:
    """Returns the `mimetype` filter, if one was given."""
    mimetype = None
    with collecting(errors) as collector:
        _object(raw, "query", collector, ("mimetype",))
        if raw.get("mimetype") is not None:
            value = _string(raw["mimetype"], "query.mimetype", collector)
            if value is not None:
                mimetype = value.strip()
                if not mimetype:
                    collector.add("query.mimetype", "is not allowed to be empty")
    return mimetype


def _created_filter(
    created: Mapping[str, Any],
    errors: ErrorCollector,
    today: Optional[date],
) -> Optional[DateRangeFilter]:
    start_ms = end_ms = None
    if created.get("from") is not None:
        start_ms = _timestamp(created["from"], "query.filter.created.from", errors)
    if created.get("to") is not None:
        end_ms = _timestamp(created["to"], "query.filter.created.to", errors)

    if end_ms is not None:
        upper = end_of_today(today)
        if end_ms > to_epoch_ms(upper):
            errors.add("query.filter.created.to", f'must be less than or equal to "{iso_ms_z(upper)}"')
            end_ms = None
        elif start_ms is not None and end_ms < start_ms:
            errors.add("query.filter.created.to", 'must be larger than or equal to "ref:from"')
            end_ms = None

    if start_ms is None and end_ms is None:
        return None
    return DateRangeFilter(
        start=from_epoch_ms(start_ms) if start_ms is not None else None,
        end=from_epoch_ms(end_ms) if end_ms is not None else None,
    )


def _tag_filter(tag: Mapping[str, Any], errors: ErrorCollector) -> Optional[TagFilter]:
    label = "query.filter.tag.values"
    tag_ids: List[int] = []
    values_ok = False

    if tag.get("values") is None:
        errors.add(label, "is required")
    else:
        raw_values = _string(tag["values"], label, errors)
        if raw_values is not None:
            items = [item.strip() for item in raw_values.split(",") if item.strip()]
            if not items:
                errors.add(label, "must contain at least 1 items")
            else:
                before = len(errors)
                for index, item in enumerate(items):
                    value = _integer(item, f"{label}[{index}]", errors, positive=True)
                    if value is not None and value not in tag_ids:
                        tag_ids.append(value)
                values_ok = len(errors) == before

    operation = TAG_OPERATION_AND
    if tag.get("operation") is not None:
        raw_op = _string(tag["operation"], "query.filter.tag.operation", errors)
        if raw_op is not None:
            op = raw_op.strip().lower()
            if op in TAG_OPERATIONS:
                operation = op
            else:
                errors.add("query.filter.tag.operation", _one_of(TAG_OPERATIONS))

    if not values_ok:
        return None
    return TagFilter(tag_ids=tuple(tag_ids), operation=operation)


def _filters(
    raw_filter: Mapping[str, Any],
    errors: ErrorCollector,
    today: Optional[date],
) -> List[LogFilter]:
    filters: List[LogFilter] = []

    if raw_filter.get("title") is not None:
        title = _string(raw_filter["title"], "query.filter.title", errors)
        if title is not None:
            title = title.strip()
            if title:
                filters.append(TitleFilter(title))
            else:
                errors.add("query.filter.title", "is not allowed to be empty")

    created = _object(raw_filter.get("created"), "query.filter.created", errors, CREATED_KEYS)
    if created is not None:
        date_filter = _created_filter(created, errors, today)
        if date_filter is not None:
            filters.append(date_filter)

    tag = _object(raw_filter.get("tag"), "query.filter.tag", errors, TAG_KEYS)
    if tag is not None:
        tag_filter = _tag_filter(tag, errors)
        if tag_filter is not None:
            filters.append(tag_filter)

    if raw_filter.get("parentLog") is not None:
        parent = _integer(raw_filter["parentLog"], "query.filter.parentLog", errors, positive=True)
        if parent is not None:
            filters.append(ParentFilter(parent))

    if raw_filter.get("rootLog") is not None:
        root = _integer(raw_filter["rootLog"], "query.filter.rootLog", errors, positive=True)
        if root is not None:
            filters.append(RootFilter(root))

    if raw_filter.get("origin") is not None:
        origin = _string(raw_filter["origin"], "query.filter.origin", errors)
        if origin is not None:
            if origin in LOG_ORIGINS:
                filters.append(OriginFilter(origin))
            else:
                errors.add("query.filter.origin", _one_of(LOG_ORIGINS))

    return filters


def _page(raw_page: Optional[Mapping[str, Any]], errors: ErrorCollector, default_limit: int) -> PageRequest:
    offset, limit = 0, default_limit
    if raw_page is not None:
        if raw_page.get("offset") is not None:
            value = _integer(raw_page["offset"], "query.page.offset", errors, minimum=0)
            offset = value if value is not None else offset
        if raw_page.get("limit") is not None:
            value = _integer(raw_page["limit"], "query.page.limit", errors, minimum=1)
            limit = value if value is not None else limit
    return PageRequest(offset=offset, limit=limit)


def _sort(raw_sort: Optional[Mapping[str, Any]], errors: ErrorCollector) -> List[SortKey]:
    keys: List[SortKey] = []
    if raw_sort is None:
        return keys
    for name, raw_direction in raw_sort.items():
        if name not in SORTABLE_FIELDS:
            continue  # already reported as "is not allowed"
        label = f"query.sort.{name}"
        direction = _string(raw_direction, label, errors)
        if direction is None:
            continue
        direction = direction.strip().lower()
        if direction in SORT_DIRECTIONS:
            keys.append(SortKey(field=name, direction=direction))
        else:
            errors.add(label, _one_of(SORT_DIRECTIONS))
    return keys


def validate_log_list_query(
    raw: Mapping[str, Any],
    *,
    today: Optional[date] = None,
    default_limit: Optional[int] = None,
    errors: Optional[ErrorCollector] = None,
) -> LogListQuery:
    """
    Validate the decoded query of GET /logs.

    Args:
        raw: nested mapping produced by `decode_nested`
        today: overrides the current date for the created-date upper bound
        default_limit: page size when page[limit] is absent
        errors: shared collector; when given, nothing is raised here

    Raises:
        ValidationFailure: with every problem found
    """
    with collecting(errors) as collector:
        _object(raw, "query", collector, LIST_QUERY_KEYS)

        filters: List[LogFilter] = []
        raw_filter = _object(raw.get("filter"), "query.filter", collector, FILTER_KEYS)
        if raw_filter is not None:
            filters = _filters(raw_filter, collector, today)

        raw_page = _object(raw.get("page"), "query.page", collector, PAGE_KEYS)
        page = _page(raw_page, collector, default_limit or settings.DEFAULT_PAGE_LIMIT)

        raw_sort = _object(raw.get("sort"), "query.sort", collector, SORTABLE_FIELDS)
        sort = _sort(raw_sort, collector)

    return LogListQuery(filters=tuple(filters), sort=tuple(sort), page=page)


# ----------------------------
# Bodies
# ----------------------------
_MESSAGES = {
    "missing": "is required",
    "extra_forbidden": "is not allowed",
    "string_type": "must be a string",
    "string_too_short": "length must be at least {min_length} characters long",
    "string_too_long": "length must be less than or equal to {max_length} characters long",
    "int_type": "must be a number",
    "int_parsing": "must be a number",
    "int_from_float": "must be an integer",
    "greater_than": "must be greater than {gt}",
    "greater_than_equal": "must be larger than or equal to {ge}",
    "less_than_equal": "must be less than or equal to {le}",
    "list_type": "must be an array",
    "model_type": "must be of type object",
    "model_attributes_type": "must be of type object",
    "dict_type": "must be of type object",
}


def _label(prefix: Optional[str], loc: Sequence[Any]) -> str:
    label = prefix or ""
    for part in loc:
        if isinstance(part, int):
            label += f"[{part}]"
        else:
            label = f"{label}.{part}" if label else str(part)
    return label or "request"


def _message(error: Mapping[str, Any]) -> str:
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind == "string_too_short" and error.get("input") == "":
        return "is not allowed to be empty"
    if kind == "greater_than" and ctx.get("gt") == 0:
        return "must be a positive number"
    if kind == "less_than_equal" and ctx.get("le") == MAX_SAFE_INTEGER:
        return "must be a safe number"
    if kind == "literal_error":
        return _one_of(_EXPECTED_RE.findall(str(ctx.get("expected", ""))))

    template = _MESSAGES.get(kind)
    if template is None:
        return str(error.get("msg", "is invalid"))
    return template.format(**ctx)


def field_errors(errors: Iterable[Mapping[str, Any]], prefix: Optional[str] = None) -> List[FieldError]:
    """
    Rewrite pydantic error entries into field errors.

    field_errors([{"type": "missing", "loc": ("title",), ...}], "body")
        -> [FieldError("body.title", "is required")]
    """
    return [FieldError(label=_label(prefix, e.get("loc", ())), message=_message(e)) for e in errors]


def validate_log_create(body: Any) -> LogCreateRequest:
    """Validate a POST /logs body. A missing body counts as an empty object."""
    try:
        return LogCreateRequest.model_validate({} if body is None else body)
    except ValidationError as exc:
        raise ValidationFailure(field_errors(exc.errors(), "body")) from None
