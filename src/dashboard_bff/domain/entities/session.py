from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True)
class Credentials:
    """Token set returned by the upstream login and refresh exchanges."""

    access_token: str
    expires_in: int
    refresh_token: str | None = None
    token_type: str = "Bearer"

    def expires_at(self, issued_at: datetime) -> datetime:
        return issued_at + timedelta(seconds=self.expires_in)


@dataclass(frozen=True)
class IdentitySnapshot:
    user: dict[str, Any] | None = None
    customer: dict[str, Any] | None = None


@dataclass(frozen=True)
class Session:
    """Server-side session row.

    Instances are immutable: a refresh produces a new row through
    :meth:`refreshed`, so readers always see a consistent token/expiry pair.
    """

    access_credential: str
    expires_at: datetime
    refresh_credential: str | None = None
    identity_snapshot: IdentitySnapshot = field(default_factory=IdentitySnapshot)
    session_id: str = ""

    @classmethod
    def from_credentials(
        cls,
        creds: Credentials,
        *,
        issued_at: datetime,
        identity: IdentitySnapshot | None = None,
    ) -> "Session":
        return cls(
            access_credential=creds.access_token,
            refresh_credential=creds.refresh_token,
            expires_at=creds.expires_at(issued_at),
            identity_snapshot=identity or IdentitySnapshot(),
        )

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_credential)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def expires_within(self, now: datetime, window: timedelta) -> bool:
        return self.expires_at < now + window

    def refreshed(self, creds: Credentials, *, issued_at: datetime) -> "Session":
        # upstream may omit refresh_token when it does not rotate it
        return replace(
            self,
            access_credential=creds.access_token,
            refresh_credential=creds.refresh_token or self.refresh_credential,
            expires_at=creds.expires_at(issued_at),
        )
