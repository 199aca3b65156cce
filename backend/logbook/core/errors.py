# logbook/core/errors.py
"""
Error types shared by the validation layer, the services and the HTTP surface.

Every error renders to the same envelope:

    {"errors": [{"status": "422", "title": "Invalid Attribute",
                 "detail": "\"query.filter.title\" is not allowed to be empty",
                 "source": {"pointer": "/data/attributes/query/filter/title"}}]}

Validation problems are accumulated in an `ErrorCollector` so a request reports
every bad field at once; the collector raises a single `ValidationFailure` at
the end. Path and query checks of one request can share a collector.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

INVALID_ATTRIBUTE = "Invalid Attribute"

_INDEX_RE = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True)
class FieldError:
    """A single field-scoped validation problem."""
    label: str  # dotted path, e.g. "query.filter.created.to"
    message: str  # sentence tail, e.g. "must be a positive number"

    @property
    def detail(self) -> str:
        return f'"{self.label}" {self.message}'

    @property
    def pointer(self) -> str:
        path = _INDEX_RE.sub(r".\1", self.label)
        return "/data/attributes/" + path.replace(".", "/")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "422",
            "title": INVALID_ATTRIBUTE,
            "detail": self.detail,
            "source": {"pointer": self.pointer},
        }


class LogbookError(Exception):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code = 500

    def to_errors(self) -> List[Dict[str, Any]]:
        return [{"status": str(self.status_code), "title": str(self)}]


class ValidationFailure(LogbookError):
    """Raised with every collected field error of one request."""

    status_code = 400

    def __init__(self, errors: List[FieldError]):
        if not errors:
            raise ValueError("ValidationFailure needs at least one error")
        super().__init__(errors[0].detail)
        self.errors = list(errors)

    def to_errors(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.errors]


class NotFoundError(LogbookError):
    status_code = 404


class BadRequestError(LogbookError):
    status_code = 400


class ErrorCollector:
    """Accumulates field errors instead of stopping at the first one."""

    def __init__(self) -> None:
        self._errors: List[FieldError] = []

    def add(self, label: str, message: str) -> None:
        self._errors.append(FieldError(label=label, message=message))

    def __len__(self) -> int:
        return len(self._errors)

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationFailure(self._errors)


@contextmanager
def collecting(errors: Optional[ErrorCollector] = None) -> Iterator[ErrorCollector]:
    """
    Hand out a collector for one validation step.

    With a shared `errors` the caller raises once every step has run; without
    one, a fresh collector raises when the block ends.
    """
    if errors is not None:
        yield errors
        return
    collector = ErrorCollector()
    yield collector
    collector.raise_if_any()


def log_not_found(log_id: int) -> NotFoundError:
    return NotFoundError(f"Log with this id ({log_id}) could not be found")


def error_body(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap already-rendered error entries in the response envelope."""
    return {"errors": errors}
