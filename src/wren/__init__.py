"""Wren — request context and content-type driven serialization for ASGI.

A handler gets one ``Context`` per request. It can write to it directly,
short-circuit with ``abort``/``redirect``/``not_found``, or return any
value and let ``write_anything`` pick the serializer: text, bytes,
``write_to``, ``read``, or the encoder registered for the response's
``Content-Type``.

Basic usage::

    from wren import App

    app = App()

    @app.handler
    def handle(ctx):
        if ctx.request.path != "/":
            ctx.not_found("nothing here")
            return None
        ctx.content_type("json")
        return {"hello": ctx.params.get("name", "world")}
"""

__version__ = "0.1.0.dev0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "Encoder",
    "EncoderRegistry",
    "HTTPError",
    "JSONEncoder",
    "NotFound",
    "Params",
    "Request",
    "ResponseClosedError",
    "SerializationError",
    "WrenError",
    "default_registry",
    "get_context",
    "write_anything",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name in ("Context", "get_context"):
        from wren import context

        return getattr(context, name)

    if name in ("Encoder", "EncoderRegistry", "JSONEncoder", "default_registry"):
        from wren import encoders

        return getattr(encoders, name)

    if name == "write_anything":
        from wren.server.negotiation import write_anything

        return write_anything

    if name == "Params":
        from wren.http.params import Params

        return Params

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "ResponseClosedError",
        "SerializationError",
        "WrenError",
    ):
        from wren import errors

        return getattr(errors, name)

    msg = f"module 'wren' has no attribute {name!r}"
    raise AttributeError(msg)
