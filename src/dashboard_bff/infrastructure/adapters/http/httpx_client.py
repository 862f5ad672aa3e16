from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from dashboard_bff.application.ports.http_client_port import HttpClientPort, HttpResponse, QueryParams
from dashboard_bff.domain.errors import UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class HttpTemporaryError(Exception):
    pass


class HttpxClient(HttpClientPort):
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        *,
        connect_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """HTTP client adapter backed by a persistent httpx.Client.

        - Every call is bounded by ``timeout`` seconds
        - Connection failures on idempotent methods are retried ``connect_retries`` times
        - Nothing else is retried: refresh exchanges and writes go out exactly once

        Args:
            base_url (str): Upstream API root, e.g. ``https://api.example.com``.
            timeout (float, optional): Per-request timeout in seconds. Defaults to 30.0.
            connect_retries (int, optional): Extra attempts after a connect error. Defaults to 2.
            transport (httpx.BaseTransport | None, optional): Custom transport (tests). Defaults to None.
        """
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Accept": "application/json",
                "User-Agent": "dashboard-bff/0.1 httpx",
            },
            transport=transport,
        )
        self._connect_retries = connect_retries

    def request(
        self,
        method: str,
        path: str,
        *,
        content: bytes | None = None,
        json_body: Any | None = None,
        headers: Mapping[str, str] | None = None,
        params: QueryParams | None = None,
        bearer: str | None = None,
    ) -> HttpResponse:
        """Sends one request upstream.

        Args:
            method (str): HTTP method.
            path (str): Path relative to the base URL.
            content (bytes | None, optional): Raw body. Defaults to None.
            json_body (Any | None, optional): Body serialized as JSON. Defaults to None.
            headers (Mapping[str, str] | None, optional): Extra headers. Defaults to None.
            params (QueryParams | None, optional): Query parameters, a mapping or ordered pairs. Defaults to None.
            bearer (str | None, optional): Access token for the Authorization header. Defaults to None.

        Returns:
            HttpResponse: Response from the server, whatever its status.
        """
        method = method.upper()
        merged = dict(headers or {})
        if bearer:
            merged["Authorization"] = f"Bearer {bearer}"
        attempts = 1 + (self._connect_retries if method in IDEMPOTENT_METHODS else 0)
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.2, max=2) + wait_random(0, 0.2),
            retry=retry_if_exception_type(HttpTemporaryError),
        )
        try:
            for attempt in retrying:
                with attempt:
                    resp = self._send(method, path, content=content, json_body=json_body, headers=merged, params=params)
        except HttpTemporaryError as e:
            raise UpstreamUnavailable(str(e)) from e
        return HttpResponse(resp.status_code, resp.content, str(resp.url), resp.headers, raw=resp)

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        json_body = kwargs.pop("json_body")
        if json_body is not None:
            kwargs["json"] = json_body
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out", method, path)
            raise UpstreamTimeout() from e
        except httpx.ConnectError as e:
            logger.warning("%s %s connect error: %s", method, path, e)
            raise HttpTemporaryError(f"{method} {path} -> {e}") from e
        except httpx.HTTPError as e:
            logger.warning("%s %s transport error: %s", method, path, e)
            raise UpstreamUnavailable(f"{method} {path} -> {e}") from e

    def close(self) -> None:
        self._client.close()
