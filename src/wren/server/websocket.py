"""ASGI websocket adapter — the Connection a Context carries after an upgrade.

The handshake runs on the event loop. The handler then runs in a worker
thread exactly like an HTTP handler, and every ``receive``/``send`` hops
back to the loop with ``anyio.from_thread.run``.
"""

from __future__ import annotations

import logging

import anyio.from_thread

from wren._internal.asgi import Receive, Send
from wren.errors import ResponseClosedError
from wren.http.headers import MutableHeaders

logger = logging.getLogger("wren.server")

NORMAL_CLOSURE = 1000
POLICY_VIOLATION = 1008
INTERNAL_ERROR = 1011


class WebSocketConnection:
    """An accepted ASGI websocket, driven from a worker thread.

    ``receive`` returns the next text or binary message, or ``None`` once
    the client has disconnected. ``send`` picks the frame type from the
    argument: ``str`` goes out as text, anything else as bytes.
    """

    __slots__ = ("_closed", "_receive", "_send")

    def __init__(self, receive: Receive, send: Send) -> None:
        self._receive = receive
        self._send = send
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def receive(self) -> bytes | str | None:
        if self._closed:
            return None
        message = anyio.from_thread.run(self._receive)
        if message["type"] == "websocket.disconnect":
            self._closed = True
            return None
        if message.get("bytes") is not None:
            return message["bytes"]
        return message.get("text")

    def send(self, data: bytes | str) -> None:
        if self._closed:
            msg = "send() on a closed websocket"
            raise ResponseClosedError(msg)
        if isinstance(data, str):
            message = {"type": "websocket.send", "text": data}
        else:
            message = {"type": "websocket.send", "bytes": bytes(data)}
        anyio.from_thread.run(self._send, message)

    def close(self, code: int = NORMAL_CLOSURE) -> None:
        """Send ``websocket.close`` once. Idempotent."""
        if self._closed:
            return
        self._closed = True
        anyio.from_thread.run(self._send, {"type": "websocket.close", "code": code})


class WebSocketResponse:
    """Response sink for an upgraded request.

    The 101 status went out with the handshake, so the sink is started
    from the beginning and ``write_header`` has nothing left to commit.
    Each non-empty ``write`` becomes one binary message, which lets
    ``Context.write_anything`` serialize over the socket.
    """

    __slots__ = ("_connection", "_headers", "_written")

    def __init__(self, connection: WebSocketConnection) -> None:
        self._connection = connection
        self._headers = MutableHeaders()
        self._written = 0

    @property
    def status(self) -> int:
        return 101

    @property
    def started(self) -> bool:
        return True

    @property
    def closed(self) -> bool:
        return self._connection.closed

    @property
    def written(self) -> int:
        return self._written

    def header(self) -> MutableHeaders:
        """Local headers. Only ``Content-Type`` matters here, for encoder lookup."""
        return self._headers

    def write_header(self, status: int) -> None:
        logger.debug("write_header(%d) ignored on an upgraded connection", status)

    def write(self, data: bytes) -> int:
        if not data:
            return 0
        self._connection.send(bytes(data))
        self._written += len(data)
        return len(data)

    def close(self) -> None:
        self._connection.close()
