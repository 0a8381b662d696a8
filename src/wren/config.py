"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, default_content_type="json")
    """

    # Include exception text in 500 bodies
    debug: bool = False

    # Content-Type applied before the handler runs ("" = none).
    # Accepts an extension ("json") or a full type ("application/json").
    default_content_type: str = ""

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Read size when copying readable sources into the response
    chunk_size: int = 64 * 1024

    # One "wren.access" log line per request
    access_log: bool = True
