# logbook/api/dependencies.py
"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Request

from logbook.utils.query_string import decode_nested


def decoded_query(request: Request) -> Dict[str, Any]:
    """The request's query string as a nested mapping (bracket notation decoded)."""
    return decode_nested(request.query_params.multi_items())
