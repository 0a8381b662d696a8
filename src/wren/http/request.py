"""Immutable HTTP request.

Frozen metadata plus the raw body bytes. The ASGI handler reads the body
in full before building the request, so everything here is synchronous.
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass
from typing import Any

from wren._internal.asgi import Scope
from wren.http.headers import Headers
from wren.http.params import Params


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Immutable for the lifetime of the Context that wraps it.
    """

    method: str
    path: str
    headers: Headers
    query: Params
    body: bytes = b""
    http_version: str = "1.1"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None
    query_string: bytes = b""

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Request target (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    # -- Body helpers --

    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Scope, body: bytes = b"") -> Request:
        """Create a Request from an ASGI scope and the fully read body."""
        query_string = scope.get("query_string", b"")
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope.get("method", "GET"),
            path=scope["path"],
            headers=Headers(tuple((bytes(k), bytes(v)) for k, v in scope.get("headers", ()))),
            query=Params.from_query_string(query_string),
            body=body,
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            query_string=query_string,
        )
