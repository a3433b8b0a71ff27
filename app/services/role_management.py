from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import DateTime, Integer, Uuid
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, aliased

from app.core.config import settings
from app.models.permission import Permission
from app.models.permission_group import PermissionGroup
from app.models.role_permission_group import RolePermissionGroup
from app.schemas.filters import PermissionGroupIndexFilter
from app.schemas.page_request import PageRequest
from app.services.query.filtering import Exists, FilterDescriptor, In
from app.services.query.pagination import PaginationConfig, apply_pagination, normalize_pagination, resolve_sort_expression
from app.services.query.raw_search import (
    CLAUSE_WHERE,
    build_search_condition_for_raw_sql_from_descriptor,
    positional_text,
)
from app.services.query.search import SearchDescriptor
from app.services.query.sorting import make_sort_mapping
from app.services.serialization import model_to_dict, serialize_value

_LOG = logging.getLogger("app.query")

ROLE_SEARCH = SearchDescriptor(columns=("role.name", "pg.module"), threshold=0.70)

role_sort_mapping = make_sort_mapping(
    {
        "id": "role.id",
        "role.id": "role.id",
        "role_name": "role.name",
        "name": "role.name",
        "role.name": "role.name",
        "total_user": "total_user",
        "created_at": "role.created_at",
        "role.created_at": "role.created_at",
        "updated_at": "role.updated_at",
        "role.updated_at": "role.updated_at",
    }
)

ROLE_PAGINATION = PaginationConfig(
    default_sort_by="role.created_at",
    default_sort_order="DESC",
    max_per_page=settings.PAGINATION_MAX_PER_PAGE,
    sort_mapping=role_sort_mapping,
)

# Roles matching through any of their permission groups; the search clause
# is appended to this subquery.
_ROLE_MATCH_SQL = (
    "SELECT role.id FROM roles role "
    "LEFT JOIN modules_roles pgr ON role.id = pgr.role_id "
    "LEFT JOIN permission_groups pg ON pgr.permission_group_id = pg.id AND pg.deleted_at IS NULL"
)

_ROLE_SELECT_SQL = (
    "SELECT role.id AS id, role.name AS name, role.created_at AS created_at, role.updated_at AS updated_at, "
    "(SELECT COUNT(*) FROM users u WHERE u.role_id = role.id AND u.deleted_at IS NULL) AS total_user "
    "FROM roles role WHERE role.deleted_at IS NULL"
)

_ROLE_COUNT_SQL = "SELECT COUNT(*) FROM roles role WHERE role.deleted_at IS NULL"


def _role_modules(db: Session, role_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[str]]:
    if not role_ids:
        return {}
    rows = (
        db.query(RolePermissionGroup.role_id, PermissionGroup.module)
        .join(PermissionGroup, PermissionGroup.id == RolePermissionGroup.permission_group_id)
        .filter(RolePermissionGroup.role_id.in_(role_ids), PermissionGroup.deleted_at.is_(None))
        .distinct()
        .order_by(PermissionGroup.module)
        .all()
    )
    modules: dict[uuid.UUID, list[str]] = {}
    for role_id, module in rows:
        modules.setdefault(role_id, []).append(module)
    return modules


def list_roles(db: Session, page_request: PageRequest) -> tuple[list[dict[str, Any]], int]:
    """Roles with their user count and distinct permission-group modules.

    Built as hand-written SQL; the search matches role names and the modules
    of the role's permission groups by similarity only.
    """
    search_clause, args = build_search_condition_for_raw_sql_from_descriptor(
        page_request.search, ROLE_SEARCH, 1, CLAUSE_WHERE
    )
    match_filter = f" AND role.id IN ({_ROLE_MATCH_SQL}{search_clause})" if search_clause else ""

    page, per_page = normalize_pagination(page_request.page, page_request.per_page, ROLE_PAGINATION.max_per_page)
    sort = resolve_sort_expression(page_request, ROLE_PAGINATION)
    limit_index = len(args) + 1
    data_sql = f"{_ROLE_SELECT_SQL}{match_filter} ORDER BY {sort} LIMIT ${limit_index} OFFSET ${limit_index + 1}"

    try:
        total = db.execute(positional_text(f"{_ROLE_COUNT_SQL}{match_filter}", args)).scalar_one()
        statement = positional_text(data_sql, [*args, per_page, (page - 1) * per_page]).columns(
            id=Uuid(),
            created_at=DateTime(timezone=True),
            updated_at=DateTime(timezone=True),
            total_user=Integer(),
        )
        rows = db.execute(statement).mappings().all()
    except SQLAlchemyError:
        _LOG.warning("role listing failed page=%s per_page=%s", page, per_page, exc_info=True)
        raise

    modules = _role_modules(db, [row["id"] for row in rows])
    result = []
    for row in rows:
        data = {key: serialize_value(value) for key, value in row.items()}
        data["modules"] = modules.get(row["id"], [])
        result.append(data)
    return result, int(total)


PERMISSION_SEARCH = SearchDescriptor(columns=("permission.name",), threshold=0.55)

PERMISSION_PAGINATION = PaginationConfig(
    default_sort_by="permission.created_at",
    default_sort_order="DESC",
    max_per_page=settings.PAGINATION_MAX_PER_PAGE,
    sort_mapping=make_sort_mapping(
        {
            "id": "permission.id",
            "permission.id": "permission.id",
            "name": "permission.name",
            "permission.name": "permission.name",
            "created_at": "permission.created_at",
            "permission.created_at": "permission.created_at",
            "updated_at": "permission.updated_at",
            "permission.updated_at": "permission.updated_at",
        }
    ),
    natural_sort_columns=frozenset({"permission.name"}),
)


def permission_index_query(db: Session) -> Query:
    permission = aliased(Permission, name="permission")
    return db.query(permission).filter(permission.deleted_at.is_(None))


def list_permissions(db: Session, page_request: PageRequest) -> tuple[list[dict[str, Any]], int]:
    rows, total = apply_pagination(
        permission_index_query(db), page_request, PERMISSION_PAGINATION, searcher=PERMISSION_SEARCH
    )
    return [model_to_dict(row) for row in rows], total


PERMISSION_GROUP_SEARCH = SearchDescriptor(columns=("permission_group.name",), threshold=0.50)

PERMISSION_GROUP_FILTERS = FilterDescriptor(
    filter_model=PermissionGroupIndexFilter,
    rules={
        "modules": In("permission_group.module"),
        "role_ids": Exists(
            "EXISTS (SELECT 1 FROM modules_roles mr "
            "WHERE mr.permission_group_id = permission_group.id AND mr.role_id IN :values)",
            uuid.UUID,
        ),
    },
)

PERMISSION_GROUP_PAGINATION = PaginationConfig(
    default_sort_by="permission_group.created_at",
    default_sort_order="DESC",
    max_per_page=settings.PAGINATION_MAX_PER_PAGE,
    sort_mapping=make_sort_mapping(
        {
            "id": "permission_group.id",
            "permission_group.id": "permission_group.id",
            "name": "permission_group.name",
            "permission_group.name": "permission_group.name",
            "module": "permission_group.module",
            "permission_group.module": "permission_group.module",
            "created_at": "permission_group.created_at",
            "permission_group.created_at": "permission_group.created_at",
            "updated_at": "permission_group.updated_at",
            "permission_group.updated_at": "permission_group.updated_at",
        }
    ),
)


def permission_group_index_query(db: Session) -> Query:
    group = aliased(PermissionGroup, name="permission_group")
    return db.query(group).filter(group.deleted_at.is_(None))


def list_permission_groups(
    db: Session, page_request: PageRequest, filter_value: PermissionGroupIndexFilter
) -> tuple[list[dict[str, Any]], int]:
    rows, total = apply_pagination(
        permission_group_index_query(db),
        page_request,
        PERMISSION_GROUP_PAGINATION,
        searcher=PERMISSION_GROUP_SEARCH,
        filters=PERMISSION_GROUP_FILTERS,
        filter_value=filter_value,
    )
    return [model_to_dict(row) for row in rows], total
