from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from dashboard_bff.application.dtos.login_payload_dto import LoginPayload
from dashboard_bff.application.dtos.session_info_dto import SessionInfoDTO
from dashboard_bff.application.keyed_locks import KeyedLocks
from dashboard_bff.application.ports.credential_issuer_port import CredentialIssuerPort
from dashboard_bff.application.ports.identity_loader_port import IdentityLoaderPort
from dashboard_bff.application.ports.notification_port import INotificationPort
from dashboard_bff.application.ports.session_store_port import CredentialStorePort
from dashboard_bff.domain.entities.session import IdentitySnapshot, Session
from dashboard_bff.domain.errors import BffError, NotAuthenticated, RefreshRejected

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_WINDOW = timedelta(minutes=5)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


def short_id(session_id: str) -> str:
    return session_id[:8] + "..."


class SessionManager:
    """Session lifecycle and the token refresh policy.

    Refreshes for one session id are serialized through ``KeyedLocks``; a
    caller that waited on the lock re-reads the row and reuses whatever the
    previous holder produced instead of refreshing again.
    """

    def __init__(
        self,
        store: CredentialStorePort,
        issuer: CredentialIssuerPort,
        *,
        identity_loader: IdentityLoaderPort | None = None,
        refresh_window: timedelta = DEFAULT_REFRESH_WINDOW,
        clock: Clock | None = None,
        locks: KeyedLocks | None = None,
        notifier: INotificationPort | None = None,
    ) -> None:
        self.store = store
        self.issuer = issuer
        self.identity_loader = identity_loader
        self.refresh_window = refresh_window
        self.clock = clock or SystemClock()
        self.locks = locks or KeyedLocks()
        self.notifier = notifier

    # ---------- lifecycle ----------
    def login(self, payload: LoginPayload) -> str:
        try:
            creds = self.issuer.issue_from_login(payload)
        except BffError:
            self._notify("login", {"outcome": "failure", "kind": payload.kind})
            raise
        issued_at = self.clock.now()
        identity = self._capture_identity(creds.access_token)
        session_id = self.store.put(
            Session.from_credentials(creds, issued_at=issued_at, identity=identity)
        )
        logger.info("login (%s) created session %s", payload.kind, short_id(session_id))
        self._notify("login", {"outcome": "success", "kind": payload.kind})
        return session_id

    def logout(self, session_id: str) -> None:
        self.store.delete(session_id)
        logger.info("logout session %s", short_id(session_id))

    def invalidate(self, session_id: str, reason: str) -> None:
        self.store.delete(session_id)
        logger.info("session %s invalidated: %s", short_id(session_id), reason)
        self._notify("session_invalidated", {"reason": reason})

    # ---------- resolution ----------
    def resolve(self, session_id: str) -> Session:
        session = self.store.get(session_id)
        if session is None:
            raise NotAuthenticated()
        now = self.clock.now()
        if session.is_expired(now):
            self.invalidate(session_id, "expired")
            raise NotAuthenticated()
        if session.can_refresh and session.expires_within(now, self.refresh_window):
            return self._refresh_proactively(session)
        return session

    def session_info(self, session_id: str) -> SessionInfoDTO:
        """Read-only view for the client's "am I logged in" query."""
        session = self.store.get(session_id)
        if session is None or session.is_expired(self.clock.now()):
            return SessionInfoDTO.anonymous()
        return SessionInfoDTO.from_domain(session)

    def refresh_after_rejection(self, session_id: str, rejected_access: str) -> Session:
        """Reactive refresh after upstream answered 401 to ``rejected_access``."""
        with self.locks.hold(session_id):
            current = self.store.get(session_id)
            if current is None:
                raise NotAuthenticated()
            if current.access_credential != rejected_access:
                # a concurrent caller already refreshed this session
                return current
            return self._refresh_locked(current, trigger="reactive")

    # ---------- internals ----------
    def _refresh_proactively(self, observed: Session) -> Session:
        session_id = observed.session_id
        with self.locks.hold(session_id):
            current = self.store.get(session_id)
            if current is None:
                raise NotAuthenticated()
            now = self.clock.now()
            if current.is_expired(now):
                self.invalidate(session_id, "expired")
                raise NotAuthenticated()
            if current.access_credential != observed.access_credential:
                return current
            return self._refresh_locked(current, trigger="proactive")

    def _refresh_locked(self, current: Session, *, trigger: str) -> Session:
        session_id = current.session_id
        refresh = current.refresh_credential
        if refresh is None:
            self.invalidate(session_id, "rejected")
            raise NotAuthenticated()
        try:
            creds = self.issuer.issue_from_refresh(refresh)
        except RefreshRejected as exc:
            logger.warning("%s refresh failed for session %s: %s", trigger, short_id(session_id), exc)
            self._notify("token_refresh", {"trigger": trigger, "outcome": "failure"})
            self.invalidate(session_id, "refresh_failed")
            raise NotAuthenticated() from exc
        issued_at = self.clock.now()
        updated = self.store.replace(session_id, lambda s: s.refreshed(creds, issued_at=issued_at))
        self._notify("token_refresh", {"trigger": trigger, "outcome": "success"})
        if updated is None:
            # logged out while the exchange was in flight
            raise NotAuthenticated()
        logger.debug("%s refresh for session %s, expires %s", trigger, short_id(session_id), updated.expires_at)
        return updated

    def _capture_identity(self, access_token: str) -> IdentitySnapshot:
        if self.identity_loader is None:
            return IdentitySnapshot()
        return self.identity_loader.load(access_token)

    def _notify(self, event: str, payload: dict[str, str]) -> None:
        if self.notifier:
            self.notifier.notify(event, payload)
