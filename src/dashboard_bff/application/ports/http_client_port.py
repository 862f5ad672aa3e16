from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol
import json

QueryParams = Mapping[str, str] | Sequence[tuple[str, str]]


class HttpResponse:
    def __init__(
        self,
        status_code: int,
        content: bytes,
        url: str,
        headers: Mapping[str, str],
        *,
        raw: Any | None = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.url = url
        self.headers = {k.lower(): v for k, v in headers.items()}
        self._raw = raw

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def json(self) -> Any:
        return json.loads(self.content)


class HttpClientPort(Protocol):
    """Minimal upstream HTTP abstraction.

    Implementations raise ``UpstreamTimeout`` / ``UpstreamUnavailable`` on
    transport failures; any HTTP status, 5xx included, is returned as a response.
    """

    def request(
        self,
        method: str,
        path: str,
        *,
        content: bytes | None = None,
        json_body: Any | None = None,
        headers: Mapping[str, str] | None = None,
        params: QueryParams | None = None,
        bearer: str | None = None,
    ) -> HttpResponse: ...

    def close(self) -> None: ...
