from __future__ import annotations

from fastapi import Request, Response

from dashboard_bff.bootstrap import BffContainer
from dashboard_bff.config import Settings
from dashboard_bff.domain.errors import NotAuthenticated


def get_container(request: Request) -> BffContainer:
    return request.app.state.container


def session_cookie(request: Request) -> str | None:
    return request.cookies.get(get_container(request).settings.session_cookie_name) or None


def require_session_cookie(request: Request) -> str:
    session_id = session_cookie(request)
    if session_id is None:
        raise NotAuthenticated("Unauthorized")
    return session_id


def set_session_cookie(response: Response, settings: Settings, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
