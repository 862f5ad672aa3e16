from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from dashboard_bff.bootstrap import BffContainer, build_container
from dashboard_bff.config import Settings, settings as default_settings
from dashboard_bff.domain.errors import NotAuthenticated, UpstreamRejected, UpstreamUnavailable
from dashboard_bff.presentation.api.dependencies import clear_session_cookie, get_container
from dashboard_bff.presentation.api.routes.auth import router as auth_router
from dashboard_bff.presentation.api.routes.health import router as health_router
from dashboard_bff.presentation.api.routes.proxy import router as proxy_router

logger = logging.getLogger(__name__)


def create_app(container: BffContainer | None = None, settings: Settings | None = None) -> FastAPI:
    """Builds the BFF application.

    With no ``container`` the lifespan builds one from ``settings`` at startup
    and closes it at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = getattr(app.state, "container", None) is None
        if owned:
            app.state.container = build_container(settings or default_settings)
        try:
            yield
        finally:
            if owned:
                app.state.container.close()
                app.state.container = None

    app = FastAPI(title="Dashboard BFF", version="0.1.0", lifespan=lifespan)
    app.state.container = container
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(proxy_router)

    @app.get("/metrics")
    def metrics(request: Request) -> Response:  # type: ignore[misc]
        data = generate_latest(get_container(request).registry)
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(NotAuthenticated)
    async def not_authenticated(request: Request, exc: NotAuthenticated) -> JSONResponse:
        response = JSONResponse(status_code=401, content={"message": exc.message})
        clear_session_cookie(response, get_container(request).settings)
        return response

    @app.exception_handler(UpstreamRejected)
    async def upstream_rejected(request: Request, exc: UpstreamRejected) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.body)

    @app.exception_handler(UpstreamUnavailable)
    async def upstream_unavailable(request: Request, exc: UpstreamUnavailable) -> JSONResponse:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
        return JSONResponse(status_code=400, content={"message": "Invalid request", "errors": errors})

    return app


app = create_app()
