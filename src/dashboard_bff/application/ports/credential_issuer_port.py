from __future__ import annotations

from typing import Protocol

from dashboard_bff.application.dtos.login_payload_dto import LoginPayload, PasswordResetRequest
from dashboard_bff.domain.entities.session import Credentials


class CredentialIssuerPort(Protocol):
    """Upstream exchanges that produce credentials. Stateless, one call each."""

    def issue_from_login(self, payload: LoginPayload) -> Credentials:
        """Raises UpstreamRejected with the upstream body, or UpstreamUnavailable."""
        ...

    def issue_from_refresh(self, refresh_credential: str) -> Credentials:
        """Raises RefreshRejected on any failure, transport errors included."""
        ...

    def request_password_reset(self, payload: PasswordResetRequest) -> None: ...
