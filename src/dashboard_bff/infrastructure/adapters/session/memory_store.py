from __future__ import annotations

import secrets
import threading
from dataclasses import replace

from dashboard_bff.application.ports.session_store_port import CredentialStorePort, SessionMutator
from dashboard_bff.domain.entities.session import Session


def new_session_id() -> str:
    """128 bits from the OS CSPRNG, URL-safe."""
    return secrets.token_urlsafe(16)


class InMemoryCredentialStore(CredentialStorePort):
    """Process-local store for single-instance deployments. Not persistent."""

    def __init__(self) -> None:
        self._rows: dict[str, Session] = {}
        self._lock = threading.Lock()

    def put(self, session: Session) -> str:
        with self._lock:
            session_id = new_session_id()
            while session_id in self._rows:
                session_id = new_session_id()
            self._rows[session_id] = replace(session, session_id=session_id)
            return session_id

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._rows.get(session_id)

    def replace(self, session_id: str, mutator: SessionMutator) -> Session | None:
        with self._lock:
            current = self._rows.get(session_id)
            if current is None:
                return None
            updated = replace(mutator(current), session_id=session_id)
            self._rows[session_id] = updated
            return updated

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._rows.pop(session_id, None)

    def close(self) -> None:
        with self._lock:
            self._rows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)
