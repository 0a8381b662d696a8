"""Shared type aliases and collaborator protocols used across wren modules."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

if TYPE_CHECKING:
    from wren.context import Context

# Request handler: receives the Context, may return any writable value
Handler: TypeAlias = Callable[["Context"], Any]


@runtime_checkable
class Connection(Protocol):
    """An upgraded bidirectional channel (websocket or raw stream).

    Present on a Context for upgraded requests, ``None`` otherwise. The
    ASGI app fills it with ``wren.server.websocket.WebSocketConnection``
    for websocket scopes; embedders may supply any object with this shape.
    """

    def receive(self) -> bytes | str | None: ...
    def send(self, data: bytes | str) -> None: ...
    def close(self) -> None: ...
