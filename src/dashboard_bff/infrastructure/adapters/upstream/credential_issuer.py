from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from dashboard_bff.application.dtos.login_payload_dto import LoginPayload, PasswordResetRequest
from dashboard_bff.application.ports.credential_issuer_port import CredentialIssuerPort
from dashboard_bff.application.ports.http_client_port import HttpClientPort, HttpResponse
from dashboard_bff.domain.entities.session import Credentials
from dashboard_bff.domain.errors import (
    BffError,
    MalformedUpstreamResponse,
    RefreshRejected,
    UpstreamRejected,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthEndpoints:
    pincode: str = "/v2/authenticate/pincode"
    otp: str = "/v1/authenticate/otp"
    refresh: str = "/v1/authenticate/refresh"
    forgot_password: str = "/legacy/api/mobile/authentication/authenticate/forgot-password"

    def for_login(self, payload: LoginPayload) -> str:
        return self.pincode if payload.kind == "pincode" else self.otp


class UpstreamCredentialIssuer(CredentialIssuerPort):
    """Performs the upstream credential exchanges. Holds no state besides config."""

    def __init__(self, http: HttpClientPort, endpoints: AuthEndpoints | None = None) -> None:
        self.http = http
        self.endpoints = endpoints or AuthEndpoints()

    def issue_from_login(self, payload: LoginPayload) -> Credentials:
        resp = self.http.request("POST", self.endpoints.for_login(payload), json_body=payload.fields)
        if not resp.ok:
            logger.info("%s login rejected by upstream: %s", payload.kind, resp.status_code)
            raise UpstreamRejected(resp.status_code, _error_body(resp, "Login failed"))
        return parse_credentials(resp)

    def issue_from_refresh(self, refresh_credential: str) -> Credentials:
        try:
            resp = self.http.request(
                "POST", self.endpoints.refresh, json_body={"refresh_token": refresh_credential}
            )
            if not resp.ok:
                raise RefreshRejected(f"refresh endpoint answered {resp.status_code}")
            return parse_credentials(resp)
        except RefreshRejected:
            raise
        except BffError as e:
            raise RefreshRejected(str(e)) from e

    def request_password_reset(self, payload: PasswordResetRequest) -> None:
        resp = self.http.request("POST", self.endpoints.forgot_password, json_body={"email": payload.email})
        if not resp.ok:
            raise UpstreamRejected(resp.status_code, _error_body(resp, "Request failed"))


def parse_credentials(resp: HttpResponse) -> Credentials:
    """Parses ``{access_token, refresh_token?, token_type, expires_in}``; never guesses a lifetime."""
    try:
        data = resp.json()
    except ValueError as e:
        raise MalformedUpstreamResponse("credential response is not JSON") from e
    if not isinstance(data, dict):
        raise MalformedUpstreamResponse("credential response is not an object")
    access = data.get("access_token")
    expires_in = data.get("expires_in")
    if not isinstance(access, str) or not access:
        raise MalformedUpstreamResponse("credential response lacks access_token")
    if isinstance(expires_in, bool) or not isinstance(expires_in, (int, float)) or expires_in <= 0:
        raise MalformedUpstreamResponse("credential response lacks a valid expires_in")
    refresh = data.get("refresh_token")
    return Credentials(
        access_token=access,
        expires_in=int(expires_in),
        refresh_token=refresh if isinstance(refresh, str) and refresh else None,
        token_type=str(data.get("token_type") or "Bearer"),
    )


def _error_body(resp: HttpResponse, fallback: str) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {"message": fallback}
