from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from dashboard_bff.domain.entities.session import Session

SessionMutator = Callable[[Session], Session]


class CredentialStorePort(Protocol):
    """Keyed persistence for session rows.

    Absence is the only "error": callers treat a missing row as not authenticated.
    """

    def put(self, session: Session) -> str:
        """Insert ``session`` under a freshly generated id and return the id."""
        ...

    def get(self, session_id: str) -> Session | None: ...

    def replace(self, session_id: str, mutator: SessionMutator) -> Session | None:
        """Atomically apply ``mutator`` to the stored row.

        Returns the new row, or None when the row is gone (e.g. concurrent logout).
        """
        ...

    def delete(self, session_id: str) -> None:
        """Remove the row. Idempotent."""
        ...

    def close(self) -> None: ...
