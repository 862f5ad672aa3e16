from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ForwardRequestDTO:
    """One logical upstream call. ``body`` is forwarded byte-for-byte.

    ``params`` keeps the client query string as ordered pairs, repeated keys included.
    """

    method: str
    path: str
    body: bytes | None = None
    content_type: str | None = None
    params: tuple[tuple[str, str], ...] = ()
