from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, Field

from dashboard_bff.application.dtos.login_payload_dto import LoginPayload, PasswordResetRequest
from dashboard_bff.bootstrap import BffContainer
from dashboard_bff.presentation.api.dependencies import (
    clear_session_cookie,
    get_container,
    session_cookie,
    set_session_cookie,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class PincodeLoginBody(BaseModel):
    connector_uuid: str = Field(pattern=UUID_PATTERN)
    pincode: str = Field(min_length=4)


class OtpLoginBody(BaseModel):
    otp: str = Field(min_length=6)


class ForgotPasswordBody(BaseModel):
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@router.post("/login-pincode")
def login_pincode(
    body: PincodeLoginBody,
    response: Response,
    container: BffContainer = Depends(get_container),
) -> dict[str, bool]:
    session_id = container.sessions.login(LoginPayload.pincode(body.connector_uuid, body.pincode))
    set_session_cookie(response, container.settings, session_id)
    return {"success": True}


@router.post("/login-otp")
def login_otp(
    body: OtpLoginBody,
    response: Response,
    container: BffContainer = Depends(get_container),
) -> dict[str, bool]:
    session_id = container.sessions.login(LoginPayload.otp(body.otp))
    set_session_cookie(response, container.settings, session_id)
    return {"success": True}


@router.post("/forgot-password")
def forgot_password(
    body: ForgotPasswordBody,
    container: BffContainer = Depends(get_container),
) -> dict[str, bool]:
    container.issuer.request_password_reset(PasswordResetRequest(email=body.email))
    return {"success": True}


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    container: BffContainer = Depends(get_container),
) -> dict[str, bool]:
    session_id = session_cookie(request)
    if session_id:
        container.sessions.logout(session_id)
    clear_session_cookie(response, container.settings)
    return {"success": True}


@router.get("/session")
def session_info(
    request: Request,
    container: BffContainer = Depends(get_container),
) -> dict[str, Any]:
    session_id = session_cookie(request)
    if session_id is None:
        return {"isAuthenticated": False}
    return container.sessions.session_info(session_id).to_dict()
