from __future__ import annotations

from typing import Any

from sqlalchemy import case, literal_column, or_, select, text
from sqlalchemy.orm import Query, Session, aliased

from app.core.config import settings
from app.models.expedition import Expedition
from app.models.expedition_contact import PHONE_TYPE_HP, PHONE_TYPE_TELP, ExpeditionContact
from app.schemas.filters import ExpeditionIndexFilter
from app.schemas.page_request import PageRequest
from app.services.query.filtering import Exists, FilterDescriptor, In, AnyIn, coerce_filter_values
from app.services.query.pagination import PaginationConfig, apply_pagination
from app.services.query.search import SearchDescriptor, apply_search_condition
from app.services.query.sorting import build_sort_expression_for_export, make_sort_mapping
from app.services.serialization import model_to_dict

EXPEDITION_ALIAS = "e"

_CONTACT_EXISTS = (
    "EXISTS (SELECT 1 FROM expedition_contacts ec "
    "WHERE ec.expedition_id = e.id AND ec.deleted_at IS NULL AND {predicate})"
)

EXPEDITION_SEARCH = SearchDescriptor(
    columns=("e.expedition_code", "e.expedition_name", "e.address"),
    exists_subqueries=(_CONTACT_EXISTS.format(predicate="ec.phone_number ILIKE ?"),),
)


class ExpeditionFilterDescriptor(FilterDescriptor):
    """Codes-or-names wins over the separate code and name lists.

    When both separate lists are given they are OR-ed together instead of
    narrowing each other.
    """

    def apply_filters(self, query: Query, filter_value: Any) -> Query:
        if not self.accepts(filter_value):
            return query
        rules = self.rules
        if filter_value.expedition_codes_or_names:
            query = self.apply_rule(query, rules["expedition_codes_or_names"], filter_value.expedition_codes_or_names)
        else:
            codes = coerce_filter_values(filter_value.expedition_codes, str)
            names = coerce_filter_values(filter_value.expedition_names, str)
            if codes and names:
                query = query.filter(
                    or_(
                        rules["expedition_codes"].predicate(codes),
                        rules["expedition_names"].predicate(names),
                    ).self_group()
                )
            elif codes:
                query = query.filter(rules["expedition_codes"].predicate(codes))
            elif names:
                query = query.filter(rules["expedition_names"].predicate(names))

        for name in ("addresses", "telp_numbers", "phone_numbers"):
            query = self.apply_rule(query, rules[name], getattr(filter_value, name))
        return query


EXPEDITION_FILTERS = ExpeditionFilterDescriptor(
    filter_model=ExpeditionIndexFilter,
    rules={
        "expedition_codes_or_names": AnyIn(("e.expedition_code", "e.expedition_name")),
        "expedition_codes": In("e.expedition_code"),
        "expedition_names": In("e.expedition_name"),
        "addresses": In("e.address"),
        "telp_numbers": Exists(
            _CONTACT_EXISTS.format(predicate=f"ec.phone_type = '{PHONE_TYPE_TELP}' AND ec.phone_number IN :values")
        ),
        "phone_numbers": Exists(
            _CONTACT_EXISTS.format(predicate=f"ec.phone_type = '{PHONE_TYPE_HP}' AND ec.phone_number IN :values")
        ),
    },
)

expedition_sort_mapping = make_sort_mapping(
    {
        "id": "e.id",
        "expedition_id": "e.id",
        "expedition_code": "e.expedition_code",
        "expedition_name": "e.expedition_name",
        "address": "e.address",
        "phone_number": "primary_phone_number",
        "telp_number": "primary_telp_number",
        "created_at": "e.created_at",
        "updated_at": "e.updated_at",
    }
)

EXPEDITION_PAGINATION = PaginationConfig(
    default_sort_by="e.created_at",
    default_sort_order="DESC",
    max_per_page=settings.PAGINATION_MAX_PER_PAGE,
    sort_mapping=expedition_sort_mapping,
    natural_sort_columns=frozenset({"e.expedition_name", "e.address"}),
)


def _primary_contact_number(expedition, phone_type: str, label: str):
    contact = aliased(ExpeditionContact, name=f"ec_{phone_type}")
    number = case(
        (or_(contact.area_code.is_(None), contact.area_code == ""), contact.phone_number),
        else_=contact.area_code + literal_column("'-'") + contact.phone_number,
    )
    return (
        select(number)
        .where(
            contact.expedition_id == expedition.id,
            contact.phone_type == phone_type,
            contact.is_primary.is_(True),
            contact.deleted_at.is_(None),
        )
        .limit(1)
        .correlate(expedition)
        .scalar_subquery()
        .label(label)
    )


def expedition_index_query(db: Session) -> Query:
    e = aliased(Expedition, name=EXPEDITION_ALIAS)
    return db.query(
        e,
        _primary_contact_number(e, PHONE_TYPE_TELP, "primary_telp_number"),
        _primary_contact_number(e, PHONE_TYPE_HP, "primary_phone_number"),
    ).filter(e.deleted_at.is_(None))


def _expedition_row(row) -> dict[str, Any]:
    expedition, telp_number, phone_number = row
    data = model_to_dict(expedition)
    data["primary_telp_number"] = telp_number
    data["primary_phone_number"] = phone_number
    return data


def list_expeditions(
    db: Session, page_request: PageRequest, filter_value: ExpeditionIndexFilter
) -> tuple[list[dict[str, Any]], int]:
    rows, total = apply_pagination(
        expedition_index_query(db),
        page_request,
        EXPEDITION_PAGINATION,
        searcher=EXPEDITION_SEARCH,
        filters=EXPEDITION_FILTERS,
        filter_value=filter_value,
    )
    return [_expedition_row(row) for row in rows], total


def all_expeditions(db: Session, filter_value: ExpeditionIndexFilter) -> list[dict[str, Any]]:
    query = apply_search_condition(expedition_index_query(db), filter_value.search, EXPEDITION_SEARCH)
    query = EXPEDITION_FILTERS.apply_filters(query, filter_value)
    sort = build_sort_expression_for_export(
        filter_value.sort_by,
        filter_value.sort_order,
        EXPEDITION_PAGINATION.default_sort_by,
        EXPEDITION_PAGINATION.default_sort_order,
        sort_mapping=expedition_sort_mapping,
        natural_sort_columns=EXPEDITION_PAGINATION.natural_sort_columns,
    )
    return [_expedition_row(row) for row in query.order_by(text(sort)).all()]
