from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.v1.common import page_payload
from app.core.deps import filter_value_dependency, get_page_request
from app.db.session import get_db
from app.schemas.filters import CityIndexFilter, DistrictIndexFilter, ProvinceIndexFilter, SubdistrictIndexFilter
from app.schemas.page_request import PageRequest
from app.schemas.pagination import list_response
from app.services.regency import CITIES, DISTRICTS, PROVINCES, SUBDISTRICTS, all_level, list_level

router = APIRouter()


@router.get("/provinces")
def index_provinces(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: ProvinceIndexFilter = Depends(filter_value_dependency(ProvinceIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_level(db, PROVINCES, page_request, filter_value)
    return page_payload(rows, total, page_request)


@router.get("/provinces/all")
def index_all_provinces(
    filter_value: ProvinceIndexFilter = Depends(filter_value_dependency(ProvinceIndexFilter)),
    db: Session = Depends(get_db),
):
    return list_response(all_level(db, PROVINCES, filter_value))


@router.get("/cities")
def index_cities(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: CityIndexFilter = Depends(filter_value_dependency(CityIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_level(db, CITIES, page_request, filter_value)
    return page_payload(rows, total, page_request)


@router.get("/cities/all")
def index_all_cities(
    filter_value: CityIndexFilter = Depends(filter_value_dependency(CityIndexFilter)),
    db: Session = Depends(get_db),
):
    return list_response(all_level(db, CITIES, filter_value))


@router.get("/districts")
def index_districts(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: DistrictIndexFilter = Depends(filter_value_dependency(DistrictIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_level(db, DISTRICTS, page_request, filter_value)
    return page_payload(rows, total, page_request)


@router.get("/districts/all")
def index_all_districts(
    filter_value: DistrictIndexFilter = Depends(filter_value_dependency(DistrictIndexFilter)),
    db: Session = Depends(get_db),
):
    return list_response(all_level(db, DISTRICTS, filter_value))


@router.get("/subdistricts")
def index_subdistricts(
    page_request: PageRequest = Depends(get_page_request),
    filter_value: SubdistrictIndexFilter = Depends(filter_value_dependency(SubdistrictIndexFilter)),
    db: Session = Depends(get_db),
):
    rows, total = list_level(db, SUBDISTRICTS, page_request, filter_value)
    return page_payload(rows, total, page_request)


@router.get("/subdistricts/all")
def index_all_subdistricts(
    filter_value: SubdistrictIndexFilter = Depends(filter_value_dependency(SubdistrictIndexFilter)),
    db: Session = Depends(get_db),
):
    return list_response(all_level(db, SUBDISTRICTS, filter_value))
