from __future__ import annotations

import logging
from typing import Any

from dashboard_bff.application.ports.http_client_port import HttpClientPort
from dashboard_bff.application.ports.identity_loader_port import IdentityLoaderPort
from dashboard_bff.domain.entities.session import IdentitySnapshot
from dashboard_bff.domain.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class UpstreamIdentityLoader(IdentityLoaderPort):
    """Captures ``/users/me`` and ``/customers/me`` right after login.

    A missing profile leaves that half of the snapshot empty; it never fails the login.
    """

    def __init__(
        self,
        http: HttpClientPort,
        *,
        user_path: str = "/v1/users/me",
        customer_path: str = "/v1/customers/me",
    ) -> None:
        self.http = http
        self.user_path = user_path
        self.customer_path = customer_path

    def load(self, access_token: str) -> IdentitySnapshot:
        return IdentitySnapshot(
            user=self._fetch(self.user_path, access_token),
            customer=self._fetch(self.customer_path, access_token),
        )

    def _fetch(self, path: str, access_token: str) -> dict[str, Any] | None:
        try:
            resp = self.http.request("GET", path, bearer=access_token)
        except UpstreamUnavailable as e:
            logger.warning("identity snapshot: GET %s failed: %s", path, e)
            return None
        if resp.status_code != 200:
            logger.warning("identity snapshot: GET %s -> %s", path, resp.status_code)
            return None
        try:
            data = resp.json()
        except ValueError:
            logger.warning("identity snapshot: GET %s returned non-JSON body", path)
            return None
        return data if isinstance(data, dict) else None
