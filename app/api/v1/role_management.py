from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.common import page_payload
from app.core.deps import filter_value_dependency, get_page_request, get_page_request_unbounded
from app.db.session import get_db
from app.schemas.filters import PermissionGroupIndexFilter
from app.schemas.page_request import PageRequest
from app.services.role_management import list_permission_groups, list_permissions, list_roles

router = APIRouter()


# Unbounded: a missing per_page pages by the default size.
@router.get("/roles")
def index_roles(page_request: PageRequest = Depends(get_page_request_unbounded), db: Session = Depends(get_db)):
    rows, total = list_roles(db, page_request)
    return page_payload(rows, total, page_request)


@router.get("/permissions")
def index_permissions(page_request: PageRequest = Depends(get_page_request), db: Session = Depends(get_db)):
    rows, total = list_permissions(db, page_request)
    return page_payload(rows, total, page_request)


@router.get("/permission-groups")
def index_permission_groups(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: PermissionGroupIndexFilter = Depends(filter_value_dependency(PermissionGroupIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_permission_groups(db, page_request, filter_value)
    return page_payload(rows, total, page_request)
