from pydantic import BaseModel
from typing import List


class ListFilter(BaseModel):
    # Used by the unpaginated `/all` listings; paged listings read these from PageRequest.
    search: str = ""
    sort_by: str = ""
    sort_order: str = ""


class ExpeditionIndexFilter(ListFilter):
    expedition_codes: List[str] = []
    expedition_names: List[str] = []
    expedition_codes_or_names: List[str] = []
    addresses: List[str] = []
    telp_numbers: List[str] = []
    phone_numbers: List[str] = []


class ParameterIndexFilter(ListFilter):
    types: List[str] = []
    names: List[str] = []
    ids: List[str] = []


class ProvinceIndexFilter(ListFilter):
    names: List[str] = []


class CityIndexFilter(ListFilter):
    province_id: str = ""
    names: List[str] = []


class DistrictIndexFilter(ListFilter):
    city_id: str = ""
    names: List[str] = []


class SubdistrictIndexFilter(ListFilter):
    district_id: str = ""
    names: List[str] = []


class PermissionGroupIndexFilter(ListFilter):
    modules: List[str] = []
    role_ids: List[str] = []
