"""Province, city, district and subdistrict listings.

The four levels share one shape: a name search, an optional parent id and a
name list filter, natural ordering on the name.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Query, Session, aliased

from app.core.config import settings
from app.models.city import City
from app.models.district import District
from app.models.province import Province
from app.models.subdistrict import Subdistrict
from app.schemas.filters import CityIndexFilter, DistrictIndexFilter, ProvinceIndexFilter, SubdistrictIndexFilter
from app.schemas.page_request import PageRequest
from app.services.query.filtering import Eq, FilterDescriptor, In
from app.services.query.pagination import PaginationConfig, apply_pagination
from app.services.query.search import SearchDescriptor, apply_search_condition
from app.services.query.sorting import SortMapping, build_sort_expression_for_export, make_sort_mapping
from app.services.serialization import model_to_dict


@dataclass(frozen=True)
class RegencyLevel:
    model: type
    alias: str
    search: SearchDescriptor
    filters: FilterDescriptor
    pagination: PaginationConfig
    export_sort_mapping: SortMapping | None = None

    def index_query(self, db: Session) -> Query:
        entity = aliased(self.model, name=self.alias)
        return db.query(entity).filter(entity.deleted_at.is_(None))


def _level(model, alias, *, search_columns, threshold, filter_model, parent_column=None, extra_sort=()):
    rules = {"names": In(f"{alias}.name")}
    if parent_column:
        rules = {parent_column: Eq(f"{alias}.{parent_column}", uuid.UUID), **rules}
    sort_columns = ("id", *((parent_column,) if parent_column else ()), "name", *extra_sort, "created_at", "updated_at")
    return RegencyLevel(
        model=model,
        alias=alias,
        search=SearchDescriptor(columns=tuple(f"{alias}.{c}" for c in search_columns), threshold=threshold),
        filters=FilterDescriptor(filter_model=filter_model, rules=rules),
        pagination=PaginationConfig(
            default_sort_by=f"{alias}.created_at",
            default_sort_order="DESC",
            allowed_columns=sort_columns,
            column_prefix=f"{alias}.",
            max_per_page=settings.PAGINATION_MAX_PER_PAGE,
            natural_sort_columns=frozenset({f"{alias}.name"}),
        ),
        export_sort_mapping=make_sort_mapping({c: f"{alias}.{c}" for c in sort_columns}),
    )


PROVINCES = _level(Province, "p", search_columns=("name",), threshold=0.33, filter_model=ProvinceIndexFilter)
CITIES = _level(
    City,
    "c",
    search_columns=("name", "area_code"),
    threshold=0.40,
    filter_model=CityIndexFilter,
    parent_column="province_id",
    extra_sort=("area_code",),
)
DISTRICTS = _level(
    District, "d", search_columns=("name",), threshold=0.50, filter_model=DistrictIndexFilter, parent_column="city_id"
)
SUBDISTRICTS = _level(
    Subdistrict,
    "s",
    search_columns=("name",),
    threshold=0.50,
    filter_model=SubdistrictIndexFilter,
    parent_column="district_id",
)


def list_level(db: Session, level: RegencyLevel, page_request: PageRequest, filter_value) -> tuple[list[dict[str, Any]], int]:
    rows, total = apply_pagination(
        level.index_query(db),
        page_request,
        level.pagination,
        searcher=level.search,
        filters=level.filters,
        filter_value=filter_value,
    )
    return [model_to_dict(row) for row in rows], total


def all_level(db: Session, level: RegencyLevel, filter_value) -> list[dict[str, Any]]:
    query = apply_search_condition(level.index_query(db), filter_value.search, level.search)
    query = level.filters.apply_filters(query, filter_value)
    config = level.pagination
    sort = build_sort_expression_for_export(
        filter_value.sort_by,
        filter_value.sort_order,
        config.default_sort_by,
        config.default_sort_order,
        sort_mapping=level.export_sort_mapping,
        natural_sort_columns=config.natural_sort_columns,
    )
    return [model_to_dict(row) for row in query.order_by(text(sort)).all()]
