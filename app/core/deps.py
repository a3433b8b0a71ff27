from typing import Any, Callable, get_origin

from fastapi import Request
from pydantic import BaseModel

from app.schemas.page_request import PageRequest
from app.services.query.page_request import parse_page_request


def get_page_request(request: Request) -> PageRequest:
    return parse_page_request(request.query_params, bounded=True)


def get_page_request_unbounded(request: Request) -> PageRequest:
    return parse_page_request(request.query_params, bounded=False)


def _is_list_field(annotation: Any) -> bool:
    return get_origin(annotation) in {list, tuple, set}


def filter_value_dependency(model: type[BaseModel]) -> Callable[[Request], BaseModel]:
    """Bind resource filter keys from the query string onto ``model``.

    List fields accept repeated keys (``names=a&names=b``) and the ``names[]``
    form; empty values are skipped.
    """

    def _inner(request: Request) -> BaseModel:
        params = request.query_params
        data: dict[str, Any] = {}
        for name, field in model.model_fields.items():
            if _is_list_field(field.annotation):
                values = [v for v in params.getlist(name) + params.getlist(f"{name}[]") if v != ""]
                if values:
                    data[name] = values
            else:
                value = params.get(name)
                if value not in (None, ""):
                    data[name] = value
        return model.model_validate(data)

    return _inner
