from __future__ import annotations

from typing import Any


class BffError(Exception):
    """Base class for errors raised by the session and proxy layer."""


class NotAuthenticated(BffError):
    """No session, or the session was irrecoverably expired or invalidated."""

    def __init__(self, message: str = "Session expired") -> None:
        super().__init__(message)
        self.message = message


class UpstreamRejected(BffError):
    """Upstream refused a login-type payload; status and body are relayed as-is."""

    def __init__(self, status_code: int, body: Any) -> None:
        super().__init__(f"upstream rejected request with status {status_code}")
        self.status_code = status_code
        self.body = body


class RefreshRejected(BffError):
    pass


class UpstreamUnavailable(BffError):
    """Network failure talking to upstream. Never the session's fault."""

    status_code = 502

    def __init__(self, message: str = "Upstream unavailable") -> None:
        super().__init__(message)
        self.message = message


class UpstreamTimeout(UpstreamUnavailable):
    status_code = 504

    def __init__(self, message: str = "Upstream timeout") -> None:
        super().__init__(message)


class MalformedUpstreamResponse(UpstreamUnavailable):
    def __init__(self, message: str = "Malformed upstream response") -> None:
        super().__init__(message)
