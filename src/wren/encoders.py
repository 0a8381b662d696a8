"""Encoder registry — content type -> encoder factory.

Mirrors the registry pattern used elsewhere in wren: mutable during setup,
frozen before the first request, plain dict reads at runtime.

An ``EncoderFactory`` takes the response sink and returns an ``Encoder``
bound to it; ``Encoder.encode(value)`` serializes one value into the
sink. ``write_anything`` consults the registry only after the
text/bytes/self-serializing/readable fast paths miss.

Free-threading safety:
    - ``register`` takes a lock and copies the table (copy-on-write)
    - ``lookup`` reads the current table reference without locking
    - ``freeze`` turns further registration into ``ConfigurationError``
"""

from __future__ import annotations

import json as json_module
import threading
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

from wren.errors import ConfigurationError

if TYPE_CHECKING:
    from wren.http.response import ResponseSink


@runtime_checkable
class Encoder(Protocol):
    """Serializes structured values into the sink it was built with."""

    def encode(self, value: Any) -> None: ...


EncoderFactory: TypeAlias = Callable[["ResponseSink"], Encoder]


class JSONEncoder:
    """Writes one JSON document per ``encode`` call.

    Non-JSON types (datetimes, UUIDs, decimals) are rendered with ``str``.
    """

    __slots__ = ("_sink", "indent")

    def __init__(self, sink: ResponseSink, *, indent: int | None = None) -> None:
        self._sink = sink
        self.indent = indent

    def encode(self, value: Any) -> None:
        payload = json_module.dumps(value, default=str, indent=self.indent)
        self._sink.write(payload.encode("utf-8"))


class EncoderRegistry:
    """Exact-match table from content-type string to ``EncoderFactory``.

    Construct one per app (or per test) and pass it in; there is no
    implicit global::

        registry = EncoderRegistry()
        registry.register("application/json", JSONEncoder)
        app = App(handler, encoders=registry)
    """

    __slots__ = ("_factories", "_frozen", "_lock")

    def __init__(self, factories: dict[str, EncoderFactory] | None = None) -> None:
        self._factories: dict[str, EncoderFactory] = dict(factories or {})
        self._frozen = False
        self._lock = threading.Lock()

    def register(self, content_type: str, factory: EncoderFactory) -> None:
        """Add or replace the factory for *content_type* (exact string).

        Raises:
            ConfigurationError: If the registry is frozen or
                *content_type* is empty.
        """
        if not content_type:
            msg = "Encoder content type must be a non-empty string"
            raise ConfigurationError(msg)
        with self._lock:
            if self._frozen:
                msg = (
                    f"Cannot register an encoder for {content_type!r}: the registry "
                    "is frozen. Register encoders before the app serves requests."
                )
                raise ConfigurationError(msg)
            factories = dict(self._factories)
            factories[content_type] = factory
            self._factories = factories

    def lookup(self, content_type: str) -> EncoderFactory | None:
        """Return the factory registered for *content_type*, or ``None``."""
        return self._factories.get(content_type)

    def freeze(self) -> None:
        """Make the registry read-only. Idempotent."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> EncoderRegistry:
        """An unfrozen registry with the same mappings."""
        return EncoderRegistry(self._factories)

    def __contains__(self, content_type: object) -> bool:
        return content_type in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<EncoderRegistry {state} {sorted(self._factories)!r}>"


def default_registry() -> EncoderRegistry:
    """A fresh registry with ``application/json`` -> ``JSONEncoder``."""
    registry = EncoderRegistry()
    registry.register("application/json", JSONEncoder)
    return registry
