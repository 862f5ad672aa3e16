from __future__ import annotations

from collections.abc import Awaitable, Callable
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from dashboard_bff.application.dtos.forward_request_dto import ForwardRequestDTO
from dashboard_bff.application.ports.http_client_port import HttpResponse
from dashboard_bff.bootstrap import BffContainer
from dashboard_bff.presentation.api.dependencies import get_container, require_session_cookie

router = APIRouter(prefix="/api", tags=["proxy"])

# (method, client path under /api, upstream path)
ROUTE_TABLE: list[tuple[str, str, str]] = [
    ("GET", "/users/me", "/v1/users/me"),
    ("GET", "/customers/me", "/v1/customers/me"),
    ("PUT", "/customers/me", "/v1/customers/me"),
    ("GET", "/customer-wallet", "/v1/customer-wallet"),
    ("GET", "/connectors", "/v1/connectors"),
    ("GET", "/connectors/{id}", "/v1/connectors/{id}"),
    ("GET", "/vehicles/makes", "/v1/vehicles/makes"),
    ("GET", "/vehicles/makes/{id}", "/v1/vehicles/makes/{id}"),
    ("GET", "/vehicles/model-groups", "/v1/vehicles/model-groups"),
    ("GET", "/vehicles/model-groups/{id}", "/v1/vehicles/model-groups/{id}"),
    ("GET", "/vehicles/models", "/v1/vehicles/models"),
    ("GET", "/vehicles/models/{id}", "/v1/vehicles/models/{id}"),
    ("GET", "/vehicles/model-variants", "/v1/vehicles/model-variants"),
    ("GET", "/vehicles/model-variants/{id}", "/v1/vehicles/model-variants/{id}"),
    ("GET", "/vehicles/search", "/v1/vehicles/search"),
    ("GET", "/products", "/v1/products"),
    ("GET", "/product-groups", "/v1/product-groups"),
    ("GET", "/product-bundles", "/v1/product-bundles"),
    ("POST", "/favorite-products", "/v1/favorite-products"),
    ("DELETE", "/favorite-products/{id}", "/v1/favorite-products/{id}"),
    ("POST", "/cart/calculate-prices", "/v1/cart/calculate-prices"),
    ("GET", "/prepared-tickets", "/v1/prepared-tickets"),
    ("POST", "/tickets", "/v1/tickets"),
    ("GET", "/tickets/{id}/notes", "/v1/tickets/{id}/notes"),
    ("GET", "/historical-tickets", "/v1/historical-tickets"),
    ("GET", "/employees", "/v1/employees"),
    ("POST", "/employees", "/v1/employees"),
    ("GET", "/employees/{id}", "/v1/employees/{id}"),
    ("PUT", "/employees/{id}", "/v1/employees/{id}"),
    ("GET", "/chats", "/v1/chats"),
    ("GET", "/chats/{id}", "/v1/chats/{id}"),
    ("GET", "/service-center", "/v1/service-center"),
    ("GET", "/service-center/status", "/v1/service-center/status"),
    ("GET", "/system/countries", "/v1/system/countries"),
    ("GET", "/system/currencies", "/v1/system/currencies"),
    ("GET", "/channels/{id}", "/v1/channels/{id}"),
    ("POST", "/translate", "/v1/translate"),
    ("POST", "/channel-actions/send-control-message", "/v1/channel-actions/send-control-message"),
    ("GET", "/channel-attachments", "/v1/channel-attachments"),
    ("POST", "/channel-attachments", "/v1/channel-attachments"),
]


def relay(resp: HttpResponse) -> Response:
    return Response(content=resp.content, status_code=resp.status_code, media_type=resp.content_type)


def _forwarder(upstream: str) -> Callable[..., Awaitable[Response]]:
    async def forward(request: Request, container: BffContainer = Depends(get_container)) -> Response:
        session_id = require_session_cookie(request)
        params = {k: quote(str(v), safe="") for k, v in request.path_params.items()}
        body = await request.body()
        req = ForwardRequestDTO(
            method=request.method,
            path=upstream.format(**params),
            body=body or None,
            content_type=request.headers.get("content-type"),
            params=tuple(request.query_params.multi_items()),
        )
        resp = await run_in_threadpool(container.dispatcher.forward, session_id, req)
        return relay(resp)

    return forward


for _method, _path, _upstream in ROUTE_TABLE:
    router.add_api_route(
        _path,
        _forwarder(_upstream),
        methods=[_method],
        name=f"{_method.lower()}:{_path}",
        response_class=Response,
    )
