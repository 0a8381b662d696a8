"""Wren exception hierarchy.

Shared across the context, the encoder registry, the sinks and the ASGI
handler so every module raises and catches the same types.
"""

from dataclasses import dataclass


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when app or registry setup is invalid.

    Typically surfaces during ``App._freeze()`` or when a frozen
    ``EncoderRegistry`` is modified.
    """


class SerializationError(WrenError):
    """No strategy can turn a value into response bytes.

    Raised by ``write_anything`` when the value is not text, bytes,
    self-serializing or readable, and no encoder is registered for the
    current ``Content-Type``. Nothing has been written when this is raised.
    """

    def __init__(self, value: object = None, content_type: str = "") -> None:
        self.value = value
        self.content_type = content_type
        super().__init__("cannot serialize data for writing to client")


class ResponseClosedError(WrenError):
    """A write was attempted on a response sink that was already finalized."""


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Handlers raise it to short-circuit. The ASGI handler answers with
    ``Context.abort(status, detail)`` if the response has not started.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — the handler has nothing at this path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
