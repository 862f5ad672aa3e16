from __future__ import annotations

from typing import Any

from prometheus_client import CollectorRegistry, Counter

from dashboard_bff.application.ports.notification_port import INotificationPort


class PrometheusNotificationAdapter(INotificationPort):
    """Turns session lifecycle events into Prometheus counters."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.logins = Counter(
            "bff_logins", "Login exchanges", ["kind", "outcome"], registry=registry
        )
        self.refreshes = Counter(
            "bff_token_refreshes", "Token refresh exchanges", ["trigger", "outcome"], registry=registry
        )
        self.invalidations = Counter(
            "bff_sessions_invalidated", "Sessions deleted by the server", ["reason"], registry=registry
        )
        self.forwarded = Counter(
            "bff_forwarded_requests", "Upstream forwarded calls", ["method", "status"], registry=registry
        )

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        if event == "login":
            self.logins.labels(kind=payload["kind"], outcome=payload["outcome"]).inc()
        elif event == "token_refresh":
            self.refreshes.labels(trigger=payload["trigger"], outcome=payload["outcome"]).inc()
        elif event == "session_invalidated":
            self.invalidations.labels(reason=payload["reason"]).inc()
        elif event == "forwarded":
            self.forwarded.labels(method=payload["method"], status=payload["status"]).inc()
