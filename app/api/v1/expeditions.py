from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.common import page_payload
from app.core.deps import filter_value_dependency, get_page_request
from app.db.session import get_db
from app.schemas.filters import ExpeditionIndexFilter
from app.schemas.page_request import PageRequest
from app.schemas.pagination import list_response
from app.services.expeditions import all_expeditions, list_expeditions

router = APIRouter()


@router.get("")
def index_expeditions(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: ExpeditionIndexFilter = Depends(filter_value_dependency(ExpeditionIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_expeditions(db, page_request, filter_value)
    return page_payload(rows, total, page_request)


@router.get("/all")
def index_all_expeditions(
    filter_value: ExpeditionIndexFilter = Depends(filter_value_dependency(ExpeditionIndexFilter)),
    db: Session = Depends(get_db),
):
    return list_response(all_expeditions(db, filter_value))
