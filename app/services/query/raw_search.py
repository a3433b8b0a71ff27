"""Search fragments for hand-written SQL.

Same tokenisation and similarity legs as :mod:`app.services.query.search`,
emitted as a clause string with ``$n`` placeholders plus a parallel argument
list. The substring (ILIKE) leg is not emitted here, so raw-SQL listings only
match by trigram similarity.
"""

from __future__ import annotations

import re
from typing import Any, Sequence

from sqlalchemy import text
from sqlalchemy.sql import bindparam
from sqlalchemy.sql.elements import TextClause

from app.services.query.identifiers import is_safe_identifier
from app.services.query.search import (
    Searcher,
    default_similarity_threshold,
    search_tokens,
    similarity_sql,
)

CLAUSE_HAVING = "HAVING"
CLAUSE_WHERE = "WHERE"

_POSITIONAL_RE = re.compile(r"\$(\d+)")


def build_search_condition_for_raw_sql(
    search: str | None,
    columns: Sequence[str],
    start_arg_index: int = 1,
    clause_type: str = CLAUSE_HAVING,
    threshold: float | None = None,
) -> tuple[str, list[Any]]:
    if not search or not columns:
        return "", []
    keyword = str(clause_type or "").strip().upper()
    if keyword != CLAUSE_WHERE:
        keyword = CLAUSE_HAVING
    arg_index = max(int(start_arg_index), 1)
    if threshold is None:
        threshold = default_similarity_threshold()

    tokens = search_tokens(search)
    word_conditions: list[str] = []
    args: list[Any] = []
    for token in tokens:
        token_lower = token.lower()
        column_conditions = []
        for column in columns:
            if not is_safe_identifier(column):
                continue
            column_conditions.append(similarity_sql(column, f"${arg_index}", threshold))
            args.append(token_lower)
            arg_index += 1
        if column_conditions:
            word_conditions.append("(" + " OR ".join(column_conditions) + ")")

    if not word_conditions:
        return "", []
    return f" {keyword} (" + " OR ".join(word_conditions) + ")", args


def build_search_condition_for_raw_sql_from_descriptor(
    search: str | None,
    searcher: Searcher | None,
    start_arg_index: int = 1,
    clause_type: str = CLAUSE_HAVING,
) -> tuple[str, list[Any]]:
    if searcher is None:
        return "", []
    threshold = searcher.similarity_threshold()
    return build_search_condition_for_raw_sql(
        search,
        list(searcher.get_search_columns() or ()),
        start_arg_index=start_arg_index,
        clause_type=clause_type,
        threshold=threshold,
    )


def positional_text(sql: str, args: Sequence[Any]) -> TextClause:
    """Bind a ``$n`` statement for execution through a SQLAlchemy session."""
    used: set[int] = set()

    def _rename(match: re.Match) -> str:
        index = int(match.group(1))
        if index < 1 or index > len(args):
            raise ValueError(f"placeholder ${index} has no argument (got {len(args)})")
        used.add(index)
        return f":arg_{index}"

    statement = text(_POSITIONAL_RE.sub(_rename, sql))
    return statement.bindparams(*[bindparam(f"arg_{index}", value=args[index - 1]) for index in sorted(used)])
