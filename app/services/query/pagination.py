from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query

from app.schemas.page_request import PageRequest
from app.services.query.filtering import FilterDescriptor
from app.services.query.search import Searcher, apply_search_condition
from app.services.query.sorting import (
    FALLBACK_SORT_COLUMN,
    SORT_DESC,
    SortMapping,
    build_natural_sort_expression,
    sanitize_sort_column,
    sanitize_sort_order,
)

_LOG = logging.getLogger("app.query")

DEFAULT_PER_PAGE = 10
# Signed 64-bit range of the database integer binds.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class PaginationConfig:
    default_sort_by: str = FALLBACK_SORT_COLUMN
    default_sort_order: str = SORT_DESC
    allowed_columns: tuple[str, ...] = ()
    column_prefix: str = ""
    max_per_page: int = 0
    sort_mapping: SortMapping | None = None
    natural_sort_columns: frozenset[str] = frozenset()


def normalize_pagination(page: int, per_page: int, max_per_page: int = 0) -> tuple[int, int]:
    if page < 1:
        page = 1
    if per_page < 1:
        per_page = DEFAULT_PER_PAGE
    if max_per_page > 0 and per_page > max_per_page:
        per_page = max_per_page
    # OFFSET (page - 1) * per_page must stay a 64-bit integer.
    page = min(page, INT64_MAX // per_page + 1)
    return page, per_page


def resolve_sort_expression(
    page_request: PageRequest,
    config: PaginationConfig,
    sort_mapping: SortMapping | None = None,
) -> str:
    """Final ORDER BY text for a paged listing.

    ``sort_mapping`` overrides the one in ``config``. Without any mapping the
    request's ``sort_by`` is checked against ``allowed_columns``. Unknown input
    keeps the configured default column.
    """
    sort_by = config.default_sort_by or FALLBACK_SORT_COLUMN
    if page_request.sort_by:
        mapping = sort_mapping or config.sort_mapping
        if mapping is not None:
            resolved = mapping(page_request.sort_by)
        else:
            resolved = sanitize_sort_column(page_request.sort_by, config.allowed_columns, config.column_prefix)
        if resolved:
            sort_by = resolved

    sort_order = config.default_sort_order or SORT_DESC
    if page_request.sort_order:
        sort_order = sanitize_sort_order(page_request.sort_order)

    return build_natural_sort_expression(sort_by, sort_order, sort_by in config.natural_sort_columns)


def apply_pagination(
    query: Query,
    page_request: PageRequest,
    config: PaginationConfig,
    *,
    searcher: Searcher | None = None,
    filters: FilterDescriptor | None = None,
    filter_value: Any = None,
    threshold: float | None = None,
) -> tuple[list, int]:
    """Search, filter, sort, count and fetch one page of ``query``.

    ``query`` must already be scoped to the resource (joins, soft-delete
    predicate). Returns ``(rows, total)`` where ``total`` ignores pagination.
    """
    query = apply_search_condition(query, page_request.search, searcher, threshold)
    if filters is not None:
        query = filters.apply_filters(query, filter_value)
    # Relevance ordering added by the search stays primary.
    query = query.order_by(text(resolve_sort_expression(page_request, config)))

    try:
        total = query.order_by(None).count()
    except SQLAlchemyError:
        _LOG.warning("listing count failed", exc_info=True)
        raise

    page, per_page = normalize_pagination(page_request.page, page_request.per_page, config.max_per_page)
    try:
        rows = query.limit(per_page).offset((page - 1) * per_page).all()
    except SQLAlchemyError:
        _LOG.warning("listing fetch failed page=%s per_page=%s", page, per_page, exc_info=True)
        raise
    _LOG.debug("listing page=%s per_page=%s total=%s rows=%s", page, per_page, total, len(rows))
    return rows, int(total)
