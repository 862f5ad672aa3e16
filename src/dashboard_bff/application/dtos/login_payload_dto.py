from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

LoginKind = Literal["pincode", "otp"]


@dataclass(frozen=True)
class LoginPayload:
    kind: LoginKind
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def pincode(cls, connector_uuid: str, pincode: str) -> "LoginPayload":
        return cls("pincode", {"connector_uuid": connector_uuid, "pincode": pincode})

    @classmethod
    def otp(cls, otp: str) -> "LoginPayload":
        return cls("otp", {"otp": otp})


@dataclass(frozen=True)
class PasswordResetRequest:
    email: str
