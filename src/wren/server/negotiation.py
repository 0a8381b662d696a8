"""Write-anything dispatch — turns a handler's value into response bytes.

isinstance-based dispatch over a fixed precedence, no magic, fully
predictable. The order is part of the contract: a ``str`` subclass that
also has ``read()`` is written as text, never streamed.

Dispatch order:

1. ``str``                    -> UTF-8 bytes
2. ``bytes`` / ``bytearray`` / ``memoryview`` -> verbatim
3. ``WritesTo``               -> ``value.write_to(sink)``, once
4. ``Readable``               -> ``read(chunk_size)`` until it returns empty
5. registered encoder          -> exact ``Content-Type`` registry lookup
6. anything else              -> ``SerializationError``, nothing written
"""

from __future__ import annotations

import enum
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from wren.errors import SerializationError

if TYPE_CHECKING:
    from wren.encoders import EncoderRegistry
    from wren.http.response import ResponseSink

DEFAULT_CHUNK_SIZE = 64 * 1024
_POLL_INTERVAL = 0.01


@runtime_checkable
class WritesTo(Protocol):
    """A value that serializes itself into a sink."""

    def write_to(self, sink: ResponseSink) -> Any: ...


@runtime_checkable
class Readable(Protocol):
    """A value that produces bytes (or text) through ``read(size)``.

    ``read`` returns an empty chunk at end of stream and ``None`` when a
    non-blocking source has nothing yet.
    """

    def read(self, size: int = -1, /) -> bytes | str | None: ...


class Strategy(enum.Enum):
    """How ``write_anything`` will serialize a value."""

    TEXT = "text"
    BYTES = "bytes"
    SELF_SERIALIZING = "self_serializing"
    STREAM = "stream"
    ENCODER = "encoder"
    NONE = "none"


def select_strategy(value: Any, content_type: str, registry: EncoderRegistry) -> Strategy:
    """Classify *value* without writing anything."""
    match value:
        case str():
            return Strategy.TEXT
        case bytes() | bytearray() | memoryview():
            return Strategy.BYTES
        case WritesTo():
            return Strategy.SELF_SERIALIZING
        case Readable():
            return Strategy.STREAM
    if registry.lookup(content_type) is not None:
        return Strategy.ENCODER
    return Strategy.NONE


def copy_stream(source: Readable, sink: ResponseSink, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Copy *source* into *sink* until ``read`` returns empty.

    Text chunks are UTF-8 encoded. ``None`` from a non-blocking source
    means no data yet: the copy waits briefly and reads again. An
    exhausted source copies 0 bytes.
    """
    total = 0
    while True:
        chunk = source.read(chunk_size)
        if chunk is None:
            time.sleep(_POLL_INTERVAL)
            continue
        if not chunk:
            return total
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        total += sink.write(chunk)


def write_anything(
    value: Any,
    sink: ResponseSink,
    registry: EncoderRegistry,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Any:
    """Best-effort serialization of *value* into *sink*.

    Returns the byte count for text, bytes and streams, whatever
    ``write_to`` returns for self-serializing values, and ``None`` for
    encoder output. Sink errors propagate unchanged.

    Raises:
        SerializationError: If no strategy applies. Nothing is written.
    """
    content_type = sink.header().get("Content-Type")
    match select_strategy(value, content_type, registry):
        case Strategy.TEXT:
            return sink.write(value.encode("utf-8"))
        case Strategy.BYTES:
            return sink.write(bytes(value))
        case Strategy.SELF_SERIALIZING:
            return value.write_to(sink)
        case Strategy.STREAM:
            return copy_stream(value, sink, chunk_size)
        case Strategy.ENCODER:
            factory = registry.lookup(content_type)
            factory(sink).encode(value)  # type: ignore[misc]
            return None
    raise SerializationError(value, content_type)
