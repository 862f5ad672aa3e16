from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from dashboard_bff.application.dtos.forward_request_dto import ForwardRequestDTO
from dashboard_bff.application.ports.http_client_port import HttpClientPort, HttpResponse
from dashboard_bff.application.ports.notification_port import INotificationPort
from dashboard_bff.application.use_cases.session_manager import SessionManager
from dashboard_bff.domain.entities.session import Session
from dashboard_bff.domain.errors import NotAuthenticated

logger = logging.getLogger(__name__)


class ForwardState(Enum):
    SUCCESS = "success"
    RETRY_NEEDED = "retry_needed"
    FAILED = "failed"


@dataclass(frozen=True)
class ForwardOutcome:
    state: ForwardState
    response: HttpResponse


class ProxyDispatcher:
    """Forwards one logical call upstream with at most one refresh-and-retry.

    RESOLVING -> FORWARDING -> SUCCESS
                            -> RETRY_NEEDED -> (refresh) -> FORWARDING(final) -> SUCCESS | FAILED
    """

    def __init__(
        self,
        sessions: SessionManager,
        http: HttpClientPort,
        *,
        notifier: INotificationPort | None = None,
    ) -> None:
        self.sessions = sessions
        self.http = http
        self.notifier = notifier

    def forward(self, session_id: str, req: ForwardRequestDTO) -> HttpResponse:
        session = self.sessions.resolve(session_id)
        outcome = self._attempt(session, req, final=False)

        if outcome.state is ForwardState.RETRY_NEEDED:
            logger.info("%s %s got 401, refreshing and retrying once", req.method, req.path)
            session = self.sessions.refresh_after_rejection(session_id, session.access_credential)
            outcome = self._attempt(session, req, final=True)

        if outcome.state is ForwardState.FAILED:
            self.sessions.invalidate(session_id, "rejected")
            raise NotAuthenticated()
        return outcome.response

    def _attempt(self, session: Session, req: ForwardRequestDTO, *, final: bool) -> ForwardOutcome:
        headers = {"Content-Type": req.content_type or "application/json"}
        resp = self.http.request(
            req.method,
            req.path,
            content=req.body or None,
            headers=headers,
            params=req.params or None,
            bearer=session.access_credential,
        )
        if self.notifier:
            self.notifier.notify("forwarded", {"method": req.method, "status": str(resp.status_code)})
        if resp.status_code != 401:
            return ForwardOutcome(ForwardState.SUCCESS, resp)
        return ForwardOutcome(ForwardState.FAILED if final else ForwardState.RETRY_NEEDED, resp)
