"""Parsing and validation of paging and filter query parameters."""

from __future__ import annotations

import re
from datetime import datetime

from tezdeleg.records import PaginationInfo

MAX_PAGE = 4294967295
MAX_LIMIT = 500

_INTEGER = re.compile(r"[+-]?[0-9]+")


class ParameterError(ValueError):
    """A query parameter could not be parsed or is out of range."""


def _to_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ParameterError(f'parsing "{text}": invalid syntax')
    return int(text)


def parse_page(text: str, maximum: int = MAX_PAGE) -> int:
    """Return the page number in ``text``, 1 when it is empty."""
    if text == "":
        return 1
    page = _to_int(text)
    if page <= 0:
        raise ParameterError("page must be a positive number")
    if page > maximum:
        raise ParameterError(f"page number exceeds maximum allowed value of {maximum}")
    return page


def parse_limit(text: str, default: int) -> int:
    """Return the page size in ``text``, ``default`` when it is empty."""
    if text == "":
        return default
    limit = _to_int(text)
    if limit <= 0:
        raise ParameterError("limit must be a positive number")
    if limit > MAX_LIMIT:
        raise ParameterError(f"limit exceeds maximum allowed value of {MAX_LIMIT}")
    return limit


def parse_year(text: str) -> int:
    """Return the year in ``text``, 0 (no filter) when it is empty."""
    if text == "":
        return 0
    year = _to_int(text)
    if year <= 0:
        raise ParameterError("year must be a positive number")
    if year > datetime.now().year:
        raise ParameterError("year cannot exceed the current year")
    return year


def build_pagination(page: int, limit: int) -> PaginationInfo:
    """Describe the position of ``page`` of size ``limit``."""
    return PaginationInfo(
        current_page=page,
        per_page=limit,
        has_prev_page=page > 1,
        prev_page=page - 1 if page > 1 else 0,
    )