"""Response sinks — where a Context's header, status and body writes land.

A sink follows HTTP ordering: headers are mutable until the status line
is committed, the status is committed once (explicitly via
``write_header`` or implicitly as 200 by the first ``write``), and the
body is append-only until ``close()``.

``BufferedResponse`` collects everything in memory (tests, embedding).
``ASGIResponseWriter`` streams each write to an ASGI ``send`` callable
from the worker thread the handler runs in.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import anyio.from_thread

from wren._internal.asgi import Send
from wren.errors import ResponseClosedError
from wren.http.headers import MutableHeaders

logger = logging.getLogger("wren.context")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


@runtime_checkable
class ResponseSink(Protocol):
    """The narrow interface a Context writes through."""

    @property
    def status(self) -> int: ...
    @property
    def started(self) -> bool: ...
    @property
    def closed(self) -> bool: ...
    @property
    def written(self) -> int: ...
    def header(self) -> MutableHeaders: ...
    def write_header(self, status: int) -> None: ...
    def write(self, data: bytes) -> int: ...
    def close(self) -> None: ...


class _SinkBase:
    """Status/header bookkeeping shared by the concrete sinks.

    Subclasses implement ``_commit`` (status line + header snapshot),
    ``_emit`` (one body chunk) and ``_finish`` (end of body).
    """

    __slots__ = ("_closed", "_headers", "_started", "_status", "_written")

    def __init__(self) -> None:
        self._headers = MutableHeaders()
        self._status = 0
        self._started = False
        self._closed = False
        self._written = 0

    @property
    def status(self) -> int:
        """The committed status code, ``0`` until committed."""
        return self._status

    @property
    def started(self) -> bool:
        """True once the status line and headers are committed."""
        return self._started

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def written(self) -> int:
        """Body bytes accepted so far."""
        return self._written

    def header(self) -> MutableHeaders:
        """The response headers. Changes after the commit are not sent."""
        return self._headers

    def write_header(self, status: int) -> None:
        """Commit the status line and a snapshot of the headers.

        Only the first call counts; later calls are logged and ignored.
        """
        if self._closed:
            msg = "write_header() on a closed response"
            raise ResponseClosedError(msg)
        if self._started:
            logger.warning(
                "superfluous write_header(%d): status %d already sent", status, self._status
            )
            return
        snapshot = self._headers.raw()
        self._commit(status, snapshot)
        self._status = status
        self._started = True

    def write(self, data: bytes) -> int:
        """Append *data* to the body, committing 200 first if needed.

        Returns the number of bytes accepted. Bodies for 1xx/204/304 are
        dropped and report 0.
        """
        if self._closed:
            msg = "write() on a closed response"
            raise ResponseClosedError(msg)
        if not self._started:
            self.write_header(200)
        if not data or not _body_allowed(self._status):
            return 0
        self._emit(bytes(data))
        self._written += len(data)
        return len(data)

    def close(self) -> None:
        """Finalize the response. Idempotent."""
        if self._closed:
            return
        if not self._started:
            self.write_header(200)
        self._closed = True
        self._finish()

    def _commit(self, status: int, headers: list[tuple[bytes, bytes]]) -> None:
        raise NotImplementedError

    def _emit(self, data: bytes) -> None:
        raise NotImplementedError

    def _finish(self) -> None:
        raise NotImplementedError


class BufferedResponse(_SinkBase):
    """An in-memory sink.

    ``sent_headers`` is the header snapshot taken at commit time, the way
    a client would see it.
    """

    __slots__ = ("_body", "sent_headers")

    def __init__(self) -> None:
        super().__init__()
        self._body = bytearray()
        self.sent_headers: list[tuple[str, str]] = []

    @property
    def body(self) -> bytes:
        """Body as bytes."""
        return bytes(self._body)

    @property
    def text(self) -> str:
        """Body as string."""
        return self._body.decode("utf-8")

    def _commit(self, status: int, headers: list[tuple[bytes, bytes]]) -> None:
        self.sent_headers = [(k.decode("utf-8"), v.decode("utf-8")) for k, v in headers]

    def _emit(self, data: bytes) -> None:
        self._body.extend(data)

    def _finish(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<BufferedResponse status={self._status} bytes={self._written}>"


class ASGIResponseWriter(_SinkBase):
    """Streams writes to an ASGI ``send`` callable.

    Must be used from a worker thread started by ``anyio.to_thread``:
    each message is handed back to the event loop with
    ``anyio.from_thread.run``. Transport failures raised by ``send``
    (client gone) propagate to the writer.

    No ``content-length`` is sent; the server frames the body.
    """

    __slots__ = ("_head_only", "_send")

    def __init__(self, send: Send, *, head_only: bool = False) -> None:
        super().__init__()
        self._send = send
        self._head_only = head_only

    def _commit(self, status: int, headers: list[tuple[bytes, bytes]]) -> None:
        anyio.from_thread.run(
            self._send,
            {"type": "http.response.start", "status": status, "headers": headers},
        )

    def _emit(self, data: bytes) -> None:
        if self._head_only:
            return
        anyio.from_thread.run(
            self._send,
            {"type": "http.response.body", "body": data, "more_body": True},
        )

    def _finish(self) -> None:
        anyio.from_thread.run(
            self._send,
            {"type": "http.response.body", "body": b"", "more_body": False},
        )
