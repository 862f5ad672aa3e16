from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from dashboard_bff.application.ports.session_store_port import CredentialStorePort, SessionMutator
from dashboard_bff.domain.entities.session import IdentitySnapshot, Session
from dashboard_bff.infrastructure.adapters.session.memory_store import new_session_id

SCHEMA = """
CREATE TABLE IF NOT EXISTS bff_session (
  session_id TEXT PRIMARY KEY,
  access_credential TEXT NOT NULL,
  refresh_credential TEXT,
  expires_at TEXT NOT NULL,
  identity TEXT NOT NULL DEFAULT '{}'
);
"""


class SQLiteCredentialStore(CredentialStorePort):
    """SQLite-backed session store. Sessions survive process restarts.

    One connection shared across threads; ``_lock`` serializes access to it and
    ``replace`` runs inside a single IMMEDIATE transaction.
    """

    def __init__(self, db_path: str = ".dashboard_sessions.sqlite") -> None:
        self._path = Path(db_path)
        self._conn = sqlite3.connect(self._path, check_same_thread=False, isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.executescript(SCHEMA)
        self._lock = threading.Lock()

    def put(self, session: Session) -> str:
        with self._lock:
            while True:
                session_id = new_session_id()
                try:
                    self._conn.execute(
                        "INSERT INTO bff_session VALUES (?, ?, ?, ?, ?)",
                        _to_row(replace(session, session_id=session_id)),
                    )
                    return session_id
                except sqlite3.IntegrityError:
                    continue

    def get(self, session_id: str) -> Session | None:
        with self._lock:
            return self._select(session_id)

    def replace(self, session_id: str, mutator: SessionMutator) -> Session | None:
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                current = self._select(session_id)
                if current is None:
                    self._conn.execute("COMMIT")
                    return None
                updated = replace(mutator(current), session_id=session_id)
                self._conn.execute(
                    "UPDATE bff_session SET access_credential=?, refresh_credential=?, expires_at=?, identity=? "
                    "WHERE session_id=?",
                    (*_to_row(updated)[1:], session_id),
                )
                self._conn.execute("COMMIT")
                return updated
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM bff_session WHERE session_id=?", (session_id,))

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _select(self, session_id: str) -> Session | None:
        row = self._conn.execute(
            "SELECT session_id, access_credential, refresh_credential, expires_at, identity "
            "FROM bff_session WHERE session_id=?",
            (session_id,),
        ).fetchone()
        return _from_row(row) if row else None


def _to_row(session: Session) -> tuple[str, str, str | None, str, str]:
    snap = session.identity_snapshot
    return (
        session.session_id,
        session.access_credential,
        session.refresh_credential,
        session.expires_at.astimezone(UTC).isoformat(),
        json.dumps({"user": snap.user, "customer": snap.customer}),
    )


def _from_row(row: tuple[str, str, str | None, str, str]) -> Session:
    session_id, access, refresh, expires_iso, identity_json = row
    expires = datetime.fromisoformat(expires_iso)
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=UTC)
    identity = json.loads(identity_json or "{}")
    return Session(
        session_id=session_id,
        access_credential=access,
        refresh_credential=refresh,
        expires_at=expires,
        identity_snapshot=IdentitySnapshot(user=identity.get("user"), customer=identity.get("customer")),
    )
