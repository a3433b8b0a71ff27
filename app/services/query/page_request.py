from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Optional

from fastapi import HTTPException
from pydantic import TypeAdapter, ValidationError

from app.schemas.page_request import FilterEntry, PageRequest
from app.services.query.pagination import INT64_MAX, INT64_MIN

_LOG = logging.getLogger("app.query")

FILTER_PARAM = "filter[]"
PROJECTION_SEPARATOR = "|"

_INT_RE = re.compile(r"[+-]?\d+")
_FILTER_ENTRIES = TypeAdapter(Optional[list[FilterEntry]])


def _invalid_parameter(detail: str) -> HTTPException:
    return HTTPException(status_code=400, detail=detail)


def _int_param(raw: str | None) -> int:
    value = str(raw or "").strip()
    if not _INT_RE.fullmatch(value):
        return 0
    number = int(value)
    if number < INT64_MIN or number > INT64_MAX:
        return 0
    return number


def parse_filter_entries(raw: str | None) -> tuple[FilterEntry, ...]:
    if not raw:
        return ()
    try:
        entries = _FILTER_ENTRIES.validate_json(raw)
    except ValidationError:
        _LOG.info("rejected malformed filter parameter")
        raise _invalid_parameter("Invalid filter parameter")
    if entries is None:
        return ()
    return tuple(entries)


def parse_projections(raw: str | None) -> tuple[str, ...]:
    return tuple(part for part in str(raw or "").split(PROJECTION_SEPARATOR) if part)


def parse_page_request(params: Mapping[str, Any], *, bounded: bool = True) -> PageRequest:
    """Build a :class:`PageRequest` from query-string parameters.

    Bounded mode rejects ``per_page == 0`` (missing or unparsable included);
    unbounded mode leaves normalisation to the executor. A malformed
    ``filter[]`` is rejected in both modes.
    """
    page = _int_param(params.get("page"))
    per_page = _int_param(params.get("per_page"))
    if bounded and per_page == 0:
        raise _invalid_parameter("per_page must be greater than 0")

    return PageRequest(
        page=page,
        per_page=per_page,
        search=str(params.get("search") or ""),
        sort_by=str(params.get("sort_by") or ""),
        sort_order=str(params.get("sort_order") or ""),
        filters=parse_filter_entries(params.get(FILTER_PARAM)),
        projections=parse_projections(params.get("projections")),
    )
