"""Extension -> MIME type table.

A built-in table covers the common web types so results do not depend on
the host's ``mime.types`` files; everything else falls back to the stdlib
``mimetypes`` database. Text types are reported with ``charset=utf-8``.
"""

import mimetypes
import threading

_BUILTIN: dict[str, str] = {
    ".avif": "image/avif",
    ".css": "text/css; charset=utf-8",
    ".csv": "text/csv; charset=utf-8",
    ".gif": "image/gif",
    ".htm": "text/html; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".ico": "image/vnd.microsoft.icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".mjs": "text/javascript; charset=utf-8",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".txt": "text/plain; charset=utf-8",
    ".wasm": "application/wasm",
    ".webp": "image/webp",
    ".xml": "text/xml; charset=utf-8",
}

_extra: dict[str, str] = {}
_lock = threading.Lock()


def _with_charset(ctype: str) -> str:
    if ctype.startswith("text/") and "charset=" not in ctype:
        return f"{ctype}; charset=utf-8"
    return ctype


def type_by_extension(ext: str) -> str:
    """Return the MIME type for *ext* (``".json"``), or ``""`` if unknown.

    The lookup is case-insensitive. *ext* must include the leading dot;
    ``"json"`` without one is not an extension and resolves to ``""``.
    """
    if not ext.startswith("."):
        return ""
    key = ext.lower()
    ctype = _extra.get(key) or _BUILTIN.get(key)
    if ctype:
        return ctype
    guessed = mimetypes.types_map.get(key) or mimetypes.common_types.get(key)
    return _with_charset(guessed) if guessed else ""


def add_type(ext: str, ctype: str) -> None:
    """Register *ctype* for *ext*, overriding the built-in table.

    Call during setup; lookups do not take the lock.

    Raises:
        ValueError: If *ext* does not start with ``"."``.
    """
    if not ext.startswith("."):
        msg = f"Extension must start with '.': {ext!r}"
        raise ValueError(msg)
    with _lock:
        _extra[ext.lower()] = ctype
