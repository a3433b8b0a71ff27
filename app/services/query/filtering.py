from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

from pydantic import BaseModel
from sqlalchemy import Boolean, Integer, String, Uuid, literal_column, or_, text
from sqlalchemy.orm import Query
from sqlalchemy.sql import bindparam

from app.services.query.identifiers import is_safe_identifier

_LOG = logging.getLogger("app.query")

EXISTS_VALUES_MARKER = ":values"

_SQL_TYPES = {
    str: String,
    int: Integer,
    bool: Boolean,
    uuid.UUID: Uuid,
}


def _coerce_bool(value):
    if isinstance(value, bool):
        return value
    text_value = str(value or "").strip().lower()
    if text_value in {"1", "true", "yes", "y"}:
        return True
    if text_value in {"0", "false", "no", "n"}:
        return False
    return None


def _coerce_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text_value = str(value or "").strip()
    if not text_value:
        return None
    try:
        return int(text_value)
    except ValueError:
        return None


def _coerce_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value or "").strip())
    except ValueError:
        return None


def coerce_filter_value(value: Any, value_type: type):
    """Coerce one raw filter value; ``None`` means the value is dropped."""
    if value is None:
        return None
    if value_type is uuid.UUID:
        return _coerce_uuid(value)
    if value_type is bool:
        return _coerce_bool(value)
    if value_type is int:
        return _coerce_int(value)
    text_value = str(value).strip()
    return text_value or None


def _raw_values(raw) -> list:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    return [raw]


def coerce_filter_values(raw, value_type: type) -> list:
    values = []
    for item in _raw_values(raw):
        coerced = coerce_filter_value(item, value_type)
        if coerced is None:
            _LOG.debug("filter value dropped value=%r type=%s", item, value_type.__name__)
            continue
        if coerced not in values:
            values.append(coerced)
    return values


def _require_safe(column: str) -> None:
    if not is_safe_identifier(column):
        raise ValueError(f"unsafe filter column: {column!r}")


@dataclass(frozen=True)
class Eq:
    column: str
    value_type: type = str

    def __post_init__(self):
        _require_safe(self.column)

    def predicate(self, values: list):
        return literal_column(self.column, type_=_SQL_TYPES[self.value_type]()) == values[0]


@dataclass(frozen=True)
class In:
    column: str
    value_type: type = str

    def __post_init__(self):
        _require_safe(self.column)

    def predicate(self, values: list):
        return literal_column(self.column, type_=_SQL_TYPES[self.value_type]()).in_(values)


@dataclass(frozen=True)
class AnyIn:
    """Same values matched against either of two columns (codes mixed with names)."""

    columns: tuple[str, str]
    value_type: type = str

    def __post_init__(self):
        for column in self.columns:
            _require_safe(column)

    def predicate(self, values: list):
        sql_type = _SQL_TYPES[self.value_type]
        return or_(*[literal_column(column, type_=sql_type()).in_(values) for column in self.columns]).self_group()


@dataclass(frozen=True)
class Exists:
    """Correlated subquery with a single ``IN :values`` list."""

    template: str
    value_type: type = str

    def __post_init__(self):
        if self.template.count(EXISTS_VALUES_MARKER) != 1:
            raise ValueError("exists filter template needs exactly one ':values' marker")

    def predicate(self, values: list):
        return text(self.template).bindparams(
            bindparam(
                "values",
                value=values,
                type_=_SQL_TYPES[self.value_type](),
                expanding=True,
                unique=True,
            )
        )


FilterRule = Union[Eq, In, AnyIn, Exists]


@dataclass(frozen=True)
class FilterDescriptor:
    """Structured filters of one resource.

    ``rules`` maps a field of ``filter_model`` to the predicate it drives. Rules
    are AND-ed in declaration order; empty fields add nothing.
    """

    filter_model: type[BaseModel]
    rules: Mapping[str, FilterRule] = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.rules) - set(self.filter_model.model_fields)
        if unknown:
            raise ValueError(f"filter rules reference unknown fields: {sorted(unknown)}")
        object.__setattr__(self, "rules", MappingProxyType(dict(self.rules)))

    def accepts(self, filter_value: Any) -> bool:
        return isinstance(filter_value, self.filter_model)

    def apply_rule(self, query: Query, rule: FilterRule, raw) -> Query:
        values = coerce_filter_values(raw, rule.value_type)
        if not values:
            return query
        return query.filter(rule.predicate(values))

    def apply_filters(self, query: Query, filter_value: Any) -> Query:
        if not self.accepts(filter_value):
            return query
        for name, rule in self.rules.items():
            query = self.apply_rule(query, rule, getattr(filter_value, name, None))
        return query
