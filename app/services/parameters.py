from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Query, Session, aliased

from app.core.config import settings
from app.models.parameter import Parameter
from app.schemas.filters import ParameterIndexFilter
from app.schemas.page_request import PageRequest
from app.services.query.filtering import FilterDescriptor, In
from app.services.query.pagination import PaginationConfig, apply_pagination
from app.services.query.search import SearchDescriptor, apply_search_condition
from app.services.query.sorting import build_sort_expression_for_export, make_sort_mapping
from app.services.serialization import model_to_dict

PARAMETER_SORT_COLUMNS = ("id", "code", "name", "value", "type", "created_at", "updated_at")

PARAMETER_SEARCH = SearchDescriptor(columns=("p.name", "p.code"), threshold=0.75)

PARAMETER_FILTERS = FilterDescriptor(
    filter_model=ParameterIndexFilter,
    rules={
        "types": In("p.type"),
        "names": In("p.name"),
        "ids": In("p.id", uuid.UUID),
    },
)

PARAMETER_PAGINATION = PaginationConfig(
    default_sort_by="p.created_at",
    default_sort_order="DESC",
    allowed_columns=PARAMETER_SORT_COLUMNS,
    column_prefix="p.",
    max_per_page=settings.PAGINATION_MAX_PER_PAGE,
)

# Export listings resolve through a mapping; paged ones use the allow-list above.
parameter_sort_mapping = make_sort_mapping({column: f"p.{column}" for column in PARAMETER_SORT_COLUMNS})


def parameter_index_query(db: Session) -> Query:
    p = aliased(Parameter, name="p")
    return db.query(p).filter(p.deleted_at.is_(None))


def list_parameters(
    db: Session, page_request: PageRequest, filter_value: ParameterIndexFilter
) -> tuple[list[dict[str, Any]], int]:
    rows, total = apply_pagination(
        parameter_index_query(db),
        page_request,
        PARAMETER_PAGINATION,
        searcher=PARAMETER_SEARCH,
        filters=PARAMETER_FILTERS,
        filter_value=filter_value,
    )
    return [model_to_dict(row) for row in rows], total


def all_parameters(db: Session, filter_value: ParameterIndexFilter) -> list[dict[str, Any]]:
    query = apply_search_condition(parameter_index_query(db), filter_value.search, PARAMETER_SEARCH)
    query = PARAMETER_FILTERS.apply_filters(query, filter_value)
    sort = build_sort_expression_for_export(
        filter_value.sort_by,
        filter_value.sort_order,
        PARAMETER_PAGINATION.default_sort_by,
        PARAMETER_PAGINATION.default_sort_order,
        sort_mapping=parameter_sort_mapping,
    )
    return [model_to_dict(row) for row in query.order_by(text(sort)).all()]
