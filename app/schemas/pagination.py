from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, Field

PAGE_LOADED_MESSAGE = "page Successfully loaded"
DATA_LOADED_MESSAGE = "data Successfully loaded"


class PaginationMeta(BaseModel):
    total: int = 0
    per_page: int = 0
    current_page: int = 0
    last_page: int = 0
    from_: int = Field(default=0, alias="from")
    to: int = 0

    model_config = {"populate_by_name": True}

    @classmethod
    def build(cls, total: int, per_page: int, current_page: int) -> "PaginationMeta":
        if per_page <= 0:
            raise ValueError("per_page must be greater than 0")
        last_page = (total + per_page - 1) // per_page
        start = (current_page - 1) * per_page + 1
        end = start + per_page - 1
        if last_page == current_page:
            end = total
        if total == 0:
            start = 0
            end = 0
        return cls(total=total, per_page=per_page, current_page=current_page, last_page=last_page, from_=start, to=end)


def project_row(row: dict[str, Any], projections: Iterable[str]) -> dict[str, Any]:
    keys = [key for key in projections if key in row]
    if not keys:
        return row
    return {key: row[key] for key in keys}


def pagination_response(
    rows: list[dict[str, Any]],
    *,
    total: int,
    per_page: int,
    current_page: int,
    projections: Iterable[str] = (),
) -> dict[str, Any]:
    projections = tuple(projections)
    meta = PaginationMeta.build(total, per_page, current_page)
    return {
        "status": 200,
        "message": PAGE_LOADED_MESSAGE,
        "data": [project_row(row, projections) for row in rows],
        "meta": meta.model_dump(by_alias=True),
    }


def list_response(rows: list[dict[str, Any]]) -> dict[str, Any]:
    return {"status": 200, "message": DATA_LOADED_MESSAGE, "data": rows}
