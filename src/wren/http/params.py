"""Aggregated request parameters.

``Params`` implements ``Mapping[str, str]`` and the ``MultiValueMapping``
protocol. One instance holds the query string; the per-request instance
handed to handlers is the merge of query and body fields built by
``aggregate_params``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING
from urllib.parse import parse_qs

if TYPE_CHECKING:
    from wren.http.forms import UploadFile
    from wren.http.request import Request


class Params(Mapping[str, str]):
    """Immutable name -> values mapping.

    ``__getitem__`` returns the first value for a key.
    ``get_list`` returns all values for a key, in arrival order.
    ``files`` holds uploaded files from a multipart body.
    """

    __slots__ = ("_data", "_files")

    def __init__(
        self,
        data: Mapping[str, list[str]] | None = None,
        files: Mapping[str, UploadFile] | None = None,
    ) -> None:
        object.__setattr__(self, "_data", {k: list(v) for k, v in (data or {}).items()})
        object.__setattr__(self, "_files", dict(files or {}))

    @classmethod
    def from_query_string(cls, query_string: bytes | str) -> Params:
        """Parse a raw query string (``a=1&b=2``), keeping blank values."""
        if isinstance(query_string, bytes):
            query_string = query_string.decode("latin-1")
        return cls(parse_qs(query_string, keep_blank_values=True))

    @classmethod
    def merge(cls, *sources: Params) -> Params:
        """Concatenate value lists from *sources*, earlier sources first."""
        data: dict[str, list[str]] = {}
        files: dict[str, UploadFile] = {}
        for source in sources:
            for key in source:
                data.setdefault(key, []).extend(source.get_list(key))
            files.update(source.files)
        return cls(data, files)

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self.get_list(k)!r}" for k in self)
        return f"Params({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[0]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key* (repeated fields, multi-selects)."""
        return list(self._data.get(key, []))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        """Return value as bool (``true``/``1``/``yes``/``on`` -> True)."""
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes", "on")


_FORM_TYPES = frozenset({"application/x-www-form-urlencoded", "multipart/form-data"})


def aggregate_params(request: Request) -> Params:
    """Merge query string and form-encoded body fields for *request*.

    Query values come first in each value list. Bodies that are not form
    encoded (JSON, binary, empty) contribute nothing.

    Raises:
        ValueError: If a multipart body is malformed.
    """
    ct = (request.content_type or "").lower().split(";")[0].strip()
    if ct not in _FORM_TYPES or not request.body:
        return request.query

    from wren.http.forms import parse_form_data

    form = parse_form_data(request.body, request.content_type or "")
    return Params.merge(request.query, form)
