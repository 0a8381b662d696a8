"""Case-insensitive HTTP header collections.

``Headers`` is the immutable request side: it keeps the raw byte pairs
from the ASGI scope and decodes on access. ``MutableHeaders`` is the
response side handed out by ``Context.header()``; sinks snapshot it with
``raw()`` when the status line is committed.

Both keep every ``(name, value)`` pair in arrival order, so repeated
headers survive. Lookups compare lower-cased names; iteration yields each
lower-cased name once.
"""

from collections.abc import Iterable, Iterator


class _HeaderLookup:
    """Read operations shared by both collections.

    Subclasses provide ``_pairs()``, yielding ``(name, value)`` strings.
    """

    __slots__ = ()

    def _pairs(self) -> Iterator[tuple[str, str]]:
        raise NotImplementedError

    def _values(self, key: str) -> Iterator[str]:
        wanted = key.lower()
        return (value for name, value in self._pairs() if name.lower() == wanted)

    def __getitem__(self, key: str) -> str:
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and next(self._values(key), None) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name.lower() for name, _ in self._pairs()))

    def __len__(self) -> int:
        return len({name.lower() for name, _ in self._pairs()})

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        return list(self._values(key))


class Headers(_HeaderLookup):
    """Immutable request headers over raw ASGI byte pairs.

    ``headers["accept"]`` is the first value; ``get_list("accept")`` is
    all of them.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", tuple(raw))

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Headers is immutable")

    def _pairs(self) -> Iterator[tuple[str, str]]:
        for name, value in self._raw:
            yield name.decode("latin-1"), value.decode("latin-1")

    def get(self, key: str, default: str | None = None) -> str | None:
        return next(self._values(key), default)

    def keys(self) -> list[str]:
        return list(self)

    def items(self) -> list[tuple[str, str]]:
        return [(name, self[name]) for name in self]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs exactly as received."""
        return self._raw

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"


class MutableHeaders(_HeaderLookup):
    """Mutable response headers.

    Keeps insertion order and the casing a name was first written with.
    ``set`` leaves one value for the name; ``add`` appends another.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = list(items)

    def _pairs(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def get(self, key: str, default: str = "") -> str:
        """First value for *key*, or *default* (``""``) if missing.

        The empty-string default lets callers write
        ``if ctx.header().get("Content-Type"): ...``.
        """
        return next(self._values(key), default)

    def set(self, key: str, value: str) -> None:
        """Make *value* the only value of *key*.

        An existing header keeps its position and casing; later duplicates
        are dropped. A new header is appended.
        """
        wanted = key.lower()
        kept: list[tuple[str, str]] = []
        replaced = False
        for name, old in self._items:
            if name.lower() != wanted:
                kept.append((name, old))
            elif not replaced:
                kept.append((name, value))
                replaced = True
        if not replaced:
            kept.append((key, value))
        self._items = kept

    def add(self, key: str, value: str) -> None:
        """Append *value* to *key* without touching existing values."""
        self._items.append((key, value))

    def delete(self, key: str) -> None:
        """Remove every value of *key*. Missing keys are ignored."""
        wanted = key.lower()
        self._items = [item for item in self._items if item[0].lower() != wanted]

    def __setitem__(self, key: str, value: str) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if key not in self:
            raise KeyError(key)
        self.delete(key)

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

    def items(self) -> list[tuple[str, str]]:
        """All ``(name, value)`` pairs in insertion order."""
        return list(self._items)

    def raw(self) -> list[tuple[bytes, bytes]]:
        """Byte pairs for an ASGI ``http.response.start``.

        Names are lower-cased. Everything is UTF-8 encoded, so values such
        as a non-ASCII ``Location`` go out as their UTF-8 bytes.
        """
        return [
            (name.lower().encode("utf-8"), value.encode("utf-8"))
            for name, value in self._items
        ]
