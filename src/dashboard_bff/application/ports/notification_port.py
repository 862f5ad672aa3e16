from typing import Any, Protocol


class INotificationPort(Protocol):
    """Sink for session lifecycle events (login, token_refresh, session_invalidated, forwarded)."""

    def notify(self, event: str, payload: dict[str, Any]) -> None: ...
