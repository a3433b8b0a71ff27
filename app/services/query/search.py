"""Fuzzy relevance search shared by every list endpoint.

A resource declares *what* is searchable with a :class:`SearchDescriptor`;
:func:`build_search_condition` turns a free-text search into a ``WHERE``
predicate plus a relevance ``ORDER BY`` term.

Matching is recall-biased: the search string is split on whitespace, the
whole string with its spaces removed is added as one more token, and a row is
admitted when *any* token matches *any* target, either by trigram similarity
(``SIMILARITY(...) >= threshold``) or by case-insensitive substring. Rows are
ranked by the summed similarity of every (token, column) pair.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Protocol, Sequence

from sqlalchemy import Float, String, func, literal, literal_column, or_, text
from sqlalchemy.orm import Query
from sqlalchemy.sql import ColumnElement, bindparam

from app.services.query.identifiers import is_safe_identifier

_LOG = logging.getLogger("app.query")

# `<column> ILIKE ?` or `REPLACE(<column>, ' ', '') ILIKE ?` inside an EXISTS template.
ILIKE_MARKER_RE = re.compile(
    r"(?:REPLACE\(\s*(?P<wrapped>[A-Za-z0-9_.]+)\s*,\s*' '\s*,\s*''\s*\)|(?P<column>[A-Za-z0-9_.]+))"
    r"\s+ILIKE\s+\?",
    re.IGNORECASE,
)


class Searcher(Protocol):
    def get_search_columns(self) -> Sequence[str]:
        ...

    def get_search_exists_subqueries(self) -> Sequence[str]:
        ...

    def similarity_threshold(self) -> float | None:
        ...


@dataclass(frozen=True)
class SearchDescriptor:
    columns: tuple[str, ...] = ()
    exists_subqueries: tuple[str, ...] = ()
    threshold: float | None = None

    def __post_init__(self):
        if self.threshold is not None and not 0.0 <= float(self.threshold) <= 1.0:
            raise ValueError(f"similarity threshold must be within [0, 1], got {self.threshold!r}")

    def get_search_columns(self) -> Sequence[str]:
        return self.columns

    def get_search_exists_subqueries(self) -> Sequence[str]:
        return self.exists_subqueries

    def similarity_threshold(self) -> float | None:
        return self.threshold


@dataclass(frozen=True)
class SearchCondition:
    where: ColumnElement
    relevance: ColumnElement | None


def default_similarity_threshold() -> float:
    from app.core.config import settings

    return float(settings.SEARCH_SIMILARITY_THRESHOLD)


def resolve_similarity_threshold(searcher: Searcher | None, threshold: float | None = None) -> float:
    if threshold is not None:
        return float(threshold)
    if searcher is not None:
        declared = searcher.similarity_threshold()
        if declared is not None:
            return float(declared)
    return default_similarity_threshold()


def search_tokens(search: str | None) -> list[str]:
    raw = str(search or "")
    words = raw.split()
    if not words:
        return []
    words.append(raw.replace(" ", ""))
    return [word.strip() for word in words if word.strip()]


def format_threshold(threshold: float) -> str:
    return f"{float(threshold):.2f}"


def similarity_sql(column: str, placeholder: str, threshold: float) -> str:
    return f"SIMILARITY(LOWER(REPLACE({column}, ' ', '')), {placeholder}) >= {format_threshold(threshold)}"


def _squashed_lower(column: str) -> ColumnElement:
    return func.lower(func.replace(literal_column(column), literal_column("' '"), literal_column("''")))


def _similarity(column: str, token: str) -> ColumnElement:
    return func.similarity(_squashed_lower(column), literal(token, String), type_=Float)


def rewrite_exists_template(template: str, threshold: float) -> str | None:
    """Swap the single ``ILIKE ?`` marker for a similarity predicate.

    Returns ``None`` for templates without exactly one usable marker.
    """
    matches = list(ILIKE_MARKER_RE.finditer(template))
    if len(matches) != 1:
        _LOG.warning("search template ignored: expected one ILIKE marker, found %s", len(matches))
        return None
    match = matches[0]
    column = match.group("wrapped") or match.group("column")
    if not is_safe_identifier(column):
        return None
    predicate = similarity_sql(column, ":search_term", threshold)
    return template[: match.start()] + predicate + template[match.end():]


def _exists_clause(rewritten: str, token: str):
    return text(rewritten).bindparams(bindparam("search_term", value=token, type_=String, unique=True))


def build_search_condition(
    search: str | None,
    searcher: Searcher | None,
    threshold: float | None = None,
) -> SearchCondition | None:
    if not search or searcher is None:
        return None
    columns = list(searcher.get_search_columns() or ())
    templates = list(searcher.get_search_exists_subqueries() or ())
    if not columns and not templates:
        return None
    tokens = search_tokens(search)
    if not tokens:
        return None

    resolved_threshold = resolve_similarity_threshold(searcher, threshold)
    safe_columns = []
    for column in columns:
        if is_safe_identifier(column):
            safe_columns.append(column)
        else:
            _LOG.debug("unsafe search column dropped column=%r", column)
    rewritten_templates = [
        rewritten
        for rewritten in (rewrite_exists_template(template, resolved_threshold) for template in templates)
        if rewritten is not None
    ]
    threshold_sql = literal_column(format_threshold(resolved_threshold))

    token_groups = []
    for token in tokens:
        token_lower = token.lower()
        conditions = []
        for column in safe_columns:
            conditions.append(_similarity(column, token_lower) >= threshold_sql)
        for column in safe_columns:
            conditions.append(func.lower(literal_column(column)).ilike(f"%{token_lower}%"))
        for rewritten in rewritten_templates:
            conditions.append(_exists_clause(rewritten, token_lower))
        if conditions:
            token_groups.append(or_(*conditions).self_group())
    if not token_groups:
        return None

    return SearchCondition(
        where=or_(*token_groups).self_group(),
        relevance=build_relevance_order(tokens, safe_columns),
    )


def build_relevance_order(tokens: Sequence[str], columns: Sequence[str]) -> ColumnElement | None:
    terms = []
    for token in tokens:
        normalized = token.replace(" ", "").lower()
        if not normalized:
            continue
        for column in columns:
            if is_safe_identifier(column):
                # similarity() is NULL for NULL columns; score those as 0.
                terms.append(func.coalesce(_similarity(column, normalized), literal_column("0", Float)))
    if not terms:
        return None
    score = terms[0]
    for term in terms[1:]:
        score = score + term
    return score.self_group().desc()


def apply_search_condition(
    query: Query,
    search: str | None,
    searcher: Searcher | None,
    threshold: float | None = None,
) -> Query:
    condition = build_search_condition(search, searcher, threshold)
    if condition is None:
        return query
    if condition.relevance is not None:
        query = query.order_by(condition.relevance)
    return query.filter(condition.where)
