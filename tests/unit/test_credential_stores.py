from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from dashboard_bff.domain.entities.session import Credentials, IdentitySnapshot, Session
from dashboard_bff.infrastructure.adapters.session.memory_store import InMemoryCredentialStore
from dashboard_bff.infrastructure.adapters.session.sqlite_store import SQLiteCredentialStore
from tests.unit._fakes_bff import T0


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = InMemoryCredentialStore()
    else:
        s = SQLiteCredentialStore(db_path=str(tmp_path / "sessions.sqlite"))
    yield s
    s.close()


def make_session(access="A1", refresh="R1"):
    return Session(
        access_credential=access,
        refresh_credential=refresh,
        expires_at=T0 + timedelta(hours=1),
        identity_snapshot=IdentitySnapshot(user={"id": 1}, customer=None),
    )


def test_put_assigns_fresh_ids(store):
    ids = {store.put(make_session()) for _ in range(50)}

    assert len(ids) == 50
    assert all(len(i) >= 22 for i in ids)


def test_get_returns_row_with_its_id(store):
    sid = store.put(make_session())
    row = store.get(sid)

    assert row.session_id == sid
    assert row.access_credential == "A1"
    assert row.expires_at == T0 + timedelta(hours=1)
    assert row.identity_snapshot.user == {"id": 1}
    assert store.get("missing") is None


def test_replace_swaps_token_and_expiry_together(store):
    sid = store.put(make_session())
    creds = Credentials(access_token="A2", expires_in=600)

    updated = store.replace(sid, lambda s: s.refreshed(creds, issued_at=T0))

    assert updated == store.get(sid)
    assert (updated.access_credential, updated.expires_at) == ("A2", T0 + timedelta(seconds=600))
    assert updated.refresh_credential == "R1"
    assert updated.session_id == sid


def test_replace_cannot_change_the_id(store):
    sid = store.put(make_session())

    updated = store.replace(sid, lambda s: replace(s, session_id="other"))

    assert updated.session_id == sid
    assert store.get("other") is None


def test_replace_on_absent_row_is_noop(store):
    assert store.replace("missing", lambda s: s) is None
    assert store.get("missing") is None


def test_delete_is_idempotent(store):
    sid = store.put(make_session())
    store.delete(sid)
    store.delete(sid)
    store.delete("missing")

    assert store.get(sid) is None


def test_sqlite_rows_survive_reopen(tmp_path):
    path = str(tmp_path / "s.sqlite")
    first = SQLiteCredentialStore(db_path=path)
    sid = first.put(make_session(refresh=None))
    first.close()

    second = SQLiteCredentialStore(db_path=path)
    try:
        row = second.get(sid)
        assert row.access_credential == "A1"
        assert row.refresh_credential is None
        assert row.expires_at.tzinfo is not None
    finally:
        second.close()
