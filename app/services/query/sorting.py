from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

from app.services.query.identifiers import is_safe_identifier

_LOG = logging.getLogger("app.query")

SORT_ASC = "ASC"
SORT_DESC = "DESC"
FALLBACK_SORT_COLUMN = "created_at"

SortMapping = Callable[[str], str]


def sanitize_sort_order(sort_order: str | None) -> str:
    value = str(sort_order or "").strip().upper()
    if value in {SORT_ASC, SORT_DESC}:
        return value
    return SORT_DESC


def sanitize_sort_column(sort_by: str | None, allowed_columns: Iterable[str], prefix: str = "") -> str:
    wanted = str(sort_by or "").strip().lower()
    for allowed in allowed_columns:
        if allowed.lower() == wanted:
            return f"{prefix}{allowed}"
    return ""


def normalize_sort_key(sort_by: str | None) -> str:
    """Bring ``sort_by`` to snake_case: ``"Expedition Name"`` -> ``"expedition_name"``."""
    value = str(sort_by or "").strip()
    if not value:
        return ""
    return value.replace("-", "_").replace(" ", "_").lower()


def make_sort_mapping(mapping: Mapping[str, str]) -> SortMapping:
    """Build a ``sort_mapping`` callable from a key -> column table.

    Unknown keys resolve to ``""`` so the caller keeps its default column.
    """
    frozen = dict(mapping)

    def _map(sort_by: str) -> str:
        normalized = normalize_sort_key(sort_by)
        if not normalized:
            return ""
        return frozen.get(normalized, "")

    return _map


def build_natural_sort_expression(column: str, sort_order: str | None, use_natural_sort: bool) -> str:
    """Render the ORDER BY fragment for ``column``.

    Natural sort splits mixed identifiers into a leading text run and the first
    numeric run so that ``A2`` sorts before ``A10``. Rows without digits sort
    after the numbered ones in both directions.
    """
    order = sanitize_sort_order(sort_order)
    if not is_safe_identifier(column):
        _LOG.debug("unsafe sort column dropped column=%r", column)
        return f"{FALLBACK_SORT_COLUMN} {order}"
    if not use_natural_sort:
        return f"{column} {order}"
    text_part = f"TRIM(SUBSTRING({column} FROM '^([^0-9]*)'))"
    numeric_part = (
        f"(CASE WHEN (regexp_match({column}, '[0-9]+'))[1] IS NULL THEN NULL "
        f"ELSE ((regexp_match({column}, '[0-9]+'))[1])::bigint END)"
    )
    return f"{text_part} {order}, {numeric_part} {order} NULLS LAST, {column} {order}"


def build_sort_expression_for_export(
    sort_by: str | None,
    sort_order: str | None,
    default_sort_by: str,
    default_sort_order: str,
    sort_mapping: SortMapping | None = None,
    natural_sort_columns: Iterable[str] = (),
) -> str:
    """Sort expression for unpaginated listings (exports, ``/all`` endpoints).

    Mirrors the paged resolution so both views order rows identically.
    """
    default_column = default_sort_by or FALLBACK_SORT_COLUMN
    column = default_column
    if sort_by and sort_mapping is not None:
        column = sort_mapping(sort_by) or default_column
    order = sanitize_sort_order(sort_order or default_sort_order or SORT_DESC)
    return build_natural_sort_expression(column, order, column in set(natural_sort_columns))
