from __future__ import annotations

from typing import Protocol

from dashboard_bff.domain.entities.session import IdentitySnapshot


class IdentityLoaderPort(Protocol):
    """Fetches the user/customer profile cached on the session at login."""

    def load(self, access_token: str) -> IdentitySnapshot: ...
