from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from dashboard_bff.domain.entities.session import Session


@dataclass(frozen=True)
class SessionInfoDTO:
    is_authenticated: bool
    user: dict[str, Any] | None = None
    customer: dict[str, Any] | None = None

    @classmethod
    def anonymous(cls) -> "SessionInfoDTO":
        return cls(is_authenticated=False)

    @classmethod
    def from_domain(cls, session: Session) -> "SessionInfoDTO":
        snap = session.identity_snapshot
        return cls(is_authenticated=True, user=snap.user, customer=snap.customer)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"isAuthenticated": self.is_authenticated}
        if self.user is not None:
            out["user"] = self.user
        if self.customer is not None:
            out["customer"] = self.customer
        return out
