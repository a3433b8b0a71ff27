from typing import Any

from app.core.config import settings
from app.schemas.page_request import PageRequest
from app.schemas.pagination import pagination_response
from app.services.query.pagination import normalize_pagination


def page_payload(rows: list[dict[str, Any]], total: int, page_request: PageRequest) -> dict[str, Any]:
    # Meta reports the page size actually applied by the executor.
    page, per_page = normalize_pagination(page_request.page, page_request.per_page, settings.PAGINATION_MAX_PER_PAGE)
    return pagination_response(
        rows, total=total, per_page=per_page, current_page=page, projections=page_request.projections
    )
