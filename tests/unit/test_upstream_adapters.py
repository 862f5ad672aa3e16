from __future__ import annotations

import json

import httpx
import pytest

from dashboard_bff.application.dtos.login_payload_dto import LoginPayload, PasswordResetRequest
from dashboard_bff.domain.errors import (
    MalformedUpstreamResponse,
    RefreshRejected,
    UpstreamRejected,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from dashboard_bff.infrastructure.adapters.http.httpx_client import HttpxClient
from dashboard_bff.infrastructure.adapters.upstream.credential_issuer import UpstreamCredentialIssuer
from dashboard_bff.infrastructure.adapters.upstream.identity_loader import UpstreamIdentityLoader

BASE = "https://upstream.test"


class Recorder:
    def __init__(self, handler):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


def client_for(handler, **kwargs) -> tuple[HttpxClient, Recorder]:
    rec = Recorder(handler)
    return HttpxClient(BASE, timeout=5, transport=httpx.MockTransport(rec), **kwargs), rec


TOKENS = {"access_token": "A1", "refresh_token": "R1", "token_type": "Bearer", "expires_in": 3600}


# ---------- credential issuer ----------
def test_pincode_login_posts_payload_and_parses_tokens():
    http, rec = client_for(lambda r: httpx.Response(200, json=TOKENS))
    creds = UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.pincode("u1", "1234"))

    assert (creds.access_token, creds.refresh_token, creds.expires_in) == ("A1", "R1", 3600)
    assert rec.requests[0].method == "POST"
    assert rec.requests[0].url.path == "/v2/authenticate/pincode"
    assert json.loads(rec.requests[0].content) == {"connector_uuid": "u1", "pincode": "1234"}


def test_otp_login_uses_otp_endpoint():
    http, rec = client_for(lambda r: httpx.Response(200, json={"access_token": "A", "expires_in": 60}))
    creds = UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.otp("123456"))

    assert rec.requests[0].url.path == "/v1/authenticate/otp"
    assert creds.refresh_token is None


def test_login_rejection_relays_upstream_body():
    http, _ = client_for(lambda r: httpx.Response(403, json={"message": "Wrong pincode", "code": 12}))

    with pytest.raises(UpstreamRejected) as exc:
        UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.pincode("u1", "0000"))
    assert exc.value.status_code == 403
    assert exc.value.body == {"message": "Wrong pincode", "code": 12}


def test_login_rejection_with_non_json_body():
    http, _ = client_for(lambda r: httpx.Response(500, text="<html>oops</html>"))

    with pytest.raises(UpstreamRejected) as exc:
        UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.otp("123456"))
    assert exc.value.body == {"message": "Login failed"}


@pytest.mark.parametrize(
    "body",
    [{"refresh_token": "R1", "expires_in": 60}, {"access_token": "A1"}, {"access_token": "A1", "expires_in": "soon"}],
)
def test_success_without_usable_tokens_is_malformed(body):
    http, _ = client_for(lambda r: httpx.Response(200, json=body))

    with pytest.raises(MalformedUpstreamResponse):
        UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.otp("123456"))


def test_login_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    http, _ = client_for(handler)
    with pytest.raises(UpstreamTimeout):
        UpstreamCredentialIssuer(http).issue_from_login(LoginPayload.otp("123456"))


def test_refresh_posts_refresh_token():
    http, rec = client_for(lambda r: httpx.Response(200, json={"access_token": "A2", "expires_in": 3600}))
    creds = UpstreamCredentialIssuer(http).issue_from_refresh("R1")

    assert creds.access_token == "A2"
    assert rec.requests[0].url.path == "/v1/authenticate/refresh"
    assert json.loads(rec.requests[0].content) == {"refresh_token": "R1"}


@pytest.mark.parametrize("status", [400, 401, 500, 503])
def test_refresh_failure_status(status):
    http, rec = client_for(lambda r: httpx.Response(status, json={"error": "invalid_grant"}))

    with pytest.raises(RefreshRejected):
        UpstreamCredentialIssuer(http).issue_from_refresh("R1")
    assert len(rec.requests) == 1


def test_refresh_network_failure_is_not_retried():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    http, rec = client_for(handler, connect_retries=3)
    with pytest.raises(RefreshRejected):
        UpstreamCredentialIssuer(http).issue_from_refresh("R1")
    assert len(rec.requests) == 1


def test_refresh_malformed_body():
    http, _ = client_for(lambda r: httpx.Response(200, text="not json"))

    with pytest.raises(RefreshRejected):
        UpstreamCredentialIssuer(http).issue_from_refresh("R1")


def test_password_reset_rejection():
    http, rec = client_for(lambda r: httpx.Response(404, json={"message": "Unknown email"}))

    with pytest.raises(UpstreamRejected) as exc:
        UpstreamCredentialIssuer(http).request_password_reset(PasswordResetRequest(email="a@b.co"))
    assert exc.value.body == {"message": "Unknown email"}
    assert rec.requests[0].url.path.endswith("/authenticate/forgot-password")


# ---------- identity loader ----------
def test_identity_loader_fetches_both_profiles():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer A1"
        if request.url.path == "/v1/users/me":
            return httpx.Response(200, json={"id": 1})
        return httpx.Response(200, json={"id": 9})

    http, _ = client_for(handler)
    snap = UpstreamIdentityLoader(http).load("A1")

    assert snap.user == {"id": 1}
    assert snap.customer == {"id": 9}


def test_identity_loader_tolerates_missing_customer():
    def handler(request):
        if request.url.path == "/v1/users/me":
            return httpx.Response(200, json={"id": 1})
        return httpx.Response(404, json={"message": "not a customer"})

    http, _ = client_for(handler)
    snap = UpstreamIdentityLoader(http).load("A1")

    assert snap.user == {"id": 1}
    assert snap.customer is None


# ---------- httpx client ----------
def test_get_connect_error_is_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"ok": True})

    http, _ = client_for(handler, connect_retries=2)
    resp = http.request("GET", "/v1/products", bearer="A1")

    assert resp.status_code == 200
    assert len(attempts) == 2


def test_post_connect_error_is_not_retried():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    http, rec = client_for(handler, connect_retries=2)
    with pytest.raises(UpstreamUnavailable):
        http.request("POST", "/v1/tickets", content=b"{}")
    assert len(rec.requests) == 1


def test_connect_retries_exhausted():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    http, rec = client_for(handler, connect_retries=1)
    with pytest.raises(UpstreamUnavailable) as exc:
        http.request("GET", "/v1/products")
    assert not isinstance(exc.value, UpstreamTimeout)
    assert len(rec.requests) == 2


def test_5xx_is_returned_not_raised():
    http, rec = client_for(lambda r: httpx.Response(503, text="down"))
    resp = http.request("GET", "/v1/products")

    assert resp.status_code == 503
    assert resp.text == "down"
    assert len(rec.requests) == 1


def test_bearer_and_query_params():
    http, rec = client_for(lambda r: httpx.Response(204))
    http.request("GET", "/v1/connectors", params={"page": "2"}, bearer="tok")

    sent = rec.requests[0]
    assert sent.headers["Authorization"] == "Bearer tok"
    assert sent.url.params["page"] == "2"


def test_query_pairs_keep_repeated_keys():
    http, rec = client_for(lambda r: httpx.Response(204))
    http.request("GET", "/v1/vehicles/search", params=(("make", "1"), ("make", "2")))

    assert rec.requests[0].url.params.get_list("make") == ["1", "2"]
