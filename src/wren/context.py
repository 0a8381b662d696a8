"""Per-request Context — the handler's view of one request/response cycle.

Provides:
- ``Context``: wraps the request, the aggregated params, the response
  sink, the app's shared ``user`` state and an optional upgraded
  connection. Response writes go through delegating methods.
- ``context_var`` / ``get_context()``: the Context currently being
  handled in this task or thread.

A Context is built immediately before the handler runs and its sink is
closed immediately after. It is never shared between requests, so it
takes no locks; the only shared objects it touches (the encoder registry
and ``user``) are read-only from here.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from wren.encoders import EncoderRegistry, default_registry
from wren.http.mime import type_by_extension
from wren.server.negotiation import DEFAULT_CHUNK_SIZE, write_anything

if TYPE_CHECKING:
    from wren._internal.types import Connection
    from wren.app import App
    from wren.http.headers import MutableHeaders
    from wren.http.params import Params
    from wren.http.request import Request
    from wren.http.response import ResponseSink

logger = logging.getLogger("wren.context")

context_var: ContextVar[Context] = ContextVar("wren_context")
"""The current Context. Set by the ASGI handler around the handler call."""


def get_context() -> Context:
    """Return the current Context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()


class Context:
    """Request information plus the response surface for one request.

    Attributes:
        request: The incoming request. Immutable.
        params: Query string and form body fields, merged. Read-only.
        response: The sink every write lands in. Owned by this Context.
        user: Copied from ``App.user`` before the handler is invoked.
            Use it to share global state between handlers.
        connection: The upgraded connection for websocket/streaming
            requests, ``None`` otherwise.
        app: The App that built this Context, if any.
        encoders: Registry consulted by ``write_anything``.
    """

    __slots__ = (
        "app",
        "chunk_size",
        "connection",
        "encoders",
        "params",
        "request",
        "response",
        "user",
    )

    def __init__(
        self,
        request: Request,
        response: ResponseSink,
        *,
        params: Params | None = None,
        user: Any = None,
        connection: Connection | None = None,
        encoders: EncoderRegistry | None = None,
        app: App | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.request = request
        self.response = response
        self.params = params if params is not None else request.query
        self.user = user
        self.connection = connection
        self.encoders = encoders if encoders is not None else default_registry()
        self.app = app
        self.chunk_size = chunk_size

    # -- Response delegation --

    def header(self) -> MutableHeaders:
        """Response headers (not request headers).

        Changes are sent only if made before the status is committed or
        the first byte is written.
        """
        return self.response.header()

    def write(self, data: bytes) -> int:
        """Write raw bytes to the client. Sink errors propagate."""
        return self.response.write(data)

    def write_header(self, status: int) -> None:
        """Commit the status line. Only the first call takes effect."""
        self.response.write_header(status)

    set_status = write_header

    def write_anything(self, value: Any) -> Any:
        """Serialize *value* into the response.

        Text, bytes, ``write_to`` and ``read`` values take fast paths;
        anything else goes to the encoder registered for the current
        ``Content-Type``. Raises ``SerializationError`` if none applies.
        """
        return write_anything(value, self.response, self.encoders, chunk_size=self.chunk_size)

    # -- Short-circuit helpers --

    def abort(self, status: int, body: str) -> None:
        """Send *status* with a plain-text *body*.

        Write failures are dropped: the handler has already decided the
        request is over.
        """
        self.content_type("txt")
        try:
            self.write_header(status)
            self.write(body.encode("utf-8"))
        except Exception:
            logger.debug("abort(%d) write dropped for %s", status, self.request.path, exc_info=True)

    def redirect(self, status: int, url: str) -> None:
        """Redirect to *url*. *status* should be a 3xx code; it is not checked."""
        self.header().set("Location", url)
        self.abort(status, "Redirecting to: " + url)

    def not_modified(self) -> None:
        try:
            self.write_header(304)
        except Exception:
            logger.debug("not_modified write dropped for %s", self.request.path, exc_info=True)

    def not_found(self, message: str) -> None:
        self.abort(404, message)

    def not_acceptable(self, message: str) -> None:
        self.abort(406, message)

    def unauthorized(self, message: str) -> None:
        self.abort(401, message)

    def forbidden(self, message: str) -> None:
        self.abort(403, message)

    # -- Content type --

    def content_type(self, ext: str) -> str:
        """Set the Content-Type by extension and return it.

        ``ctx.content_type("json")`` sets ``application/json``. A value
        containing ``/`` is used verbatim. Unknown extensions return
        ``""`` and leave the header untouched.
        """
        if "/" in ext:
            ctype = ext
        else:
            if not ext.startswith("."):
                ext = "." + ext
            ctype = type_by_extension(ext)
        if ctype:
            self.header().set("Content-Type", ctype)
        return ctype

    def __repr__(self) -> str:
        return f"<Context {self.request.method} {self.request.path}>"
