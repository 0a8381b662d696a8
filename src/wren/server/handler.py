"""ASGI handler — translates ASGI scope/messages to wren types.

The only component that touches raw ASGI directly, apart from the
websocket adapter it hands upgraded requests to. Reads the body,
builds the Request and its Params, and runs the synchronous part of the
request (Context construction, handler call, serialization of the
return value, sink finalization) in an anyio worker thread.
"""

import functools
import logging
import time
from typing import Any

import anyio.to_thread

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import Handler
from wren.config import AppConfig
from wren.context import Context, context_var
from wren.encoders import EncoderRegistry
from wren.errors import HTTPError
from wren.http.params import aggregate_params
from wren.http.request import Request
from wren.http.response import ASGIResponseWriter, ResponseSink
from wren.server.errors import handle_http_error, handle_internal_error
from wren.server.websocket import (
    INTERNAL_ERROR,
    NORMAL_CLOSURE,
    POLICY_VIOLATION,
    WebSocketConnection,
    WebSocketResponse,
)

logger = logging.getLogger("wren.server")
access_logger = logging.getLogger("wren.access")


class _BodyTooLarge(Exception):
    pass


class _Disconnected(Exception):
    pass


async def _read_body(receive: Receive, limit: int) -> bytes:
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            raise _Disconnected
        body = message.get("body", b"")
        if body:
            size += len(body)
            if size > limit:
                raise _BodyTooLarge
            chunks.append(body)
        if not message.get("more_body", False):
            return b"".join(chunks)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    handler: Handler,
    encoders: EncoderRegistry,
    config: AppConfig,
    user: Any = None,
    app: Any = None,
) -> None:
    """Process a single HTTP or websocket request through the full pipeline."""
    if scope["type"] == "websocket":
        await handle_websocket(
            scope,
            receive,
            send,
            handler=handler,
            encoders=encoders,
            config=config,
            user=user,
            app=app,
        )
        return
    if scope["type"] != "http":
        logger.debug("ignoring unsupported ASGI scope type %r", scope["type"])
        return

    too_large = False
    try:
        body = await _read_body(receive, config.max_content_length)
    except _Disconnected:
        logger.debug("client disconnected before the body was read: %s", scope.get("path"))
        return
    except _BodyTooLarge:
        body = b""
        too_large = True

    request = Request.from_asgi(scope, body)
    sink = ASGIResponseWriter(send, head_only=request.method == "HEAD")

    await anyio.to_thread.run_sync(
        functools.partial(
            process_request,
            request,
            sink,
            handler=handler,
            encoders=encoders,
            config=config,
            user=user,
            app=app,
            too_large=too_large,
        )
    )


def process_request(
    request: Request,
    sink: ResponseSink,
    *,
    handler: Handler,
    encoders: EncoderRegistry,
    config: AppConfig,
    user: Any = None,
    app: Any = None,
    too_large: bool = False,
) -> None:
    """Run one request against *sink*, synchronously.

    Builds the Context, calls *handler*, writes a non-``None`` return
    value with ``Context.write_anything``, maps exceptions to error
    responses and always closes the sink.
    """
    start = time.perf_counter()

    def make_context(params: Any = None) -> Context:
        return Context(
            request,
            sink,
            params=params,
            user=user,
            encoders=encoders,
            app=app,
            chunk_size=config.chunk_size,
        )

    try:
        if too_large:
            make_context().abort(413, "Request Entity Too Large")
            return

        try:
            params = aggregate_params(request)
        except ValueError as exc:
            logger.debug("400 %s %s: %s", request.method, request.path, exc)
            make_context().abort(400, "Malformed form body")
            return

        ctx = make_context(params)
        token = context_var.set(ctx)
        try:
            if config.default_content_type:
                ctx.content_type(config.default_content_type)
            result = handler(ctx)
            if result is not None:
                ctx.write_anything(result)
        except HTTPError as exc:
            handle_http_error(ctx, exc)
        except Exception as exc:
            handle_internal_error(ctx, exc, debug=config.debug)
        finally:
            context_var.reset(token)
    finally:
        _finalize(request, sink)
        if config.access_log:
            access_logger.info(
                "%s %s %d %d %.1fms",
                request.method,
                request.url,
                sink.status,
                sink.written,
                (time.perf_counter() - start) * 1000,
            )


def _finalize(request: Request, sink: ResponseSink) -> None:
    try:
        sink.close()
    except OSError:
        # Client went away; the transport already dropped the connection.
        logger.info("client disconnected during %s %s", request.method, request.path)


async def handle_websocket(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    handler: Handler,
    encoders: EncoderRegistry,
    config: AppConfig,
    user: Any = None,
    app: Any = None,
) -> None:
    """Accept a websocket and run *handler* with the connection attached."""
    message = await receive()
    if message["type"] != "websocket.connect":
        logger.debug("websocket closed before the handshake: %s", scope.get("path"))
        return
    await send({"type": "websocket.accept"})

    request = Request.from_asgi(scope)
    connection = WebSocketConnection(receive, send)
    await anyio.to_thread.run_sync(
        functools.partial(
            process_websocket,
            request,
            connection,
            handler=handler,
            encoders=encoders,
            config=config,
            user=user,
            app=app,
        )
    )


def process_websocket(
    request: Request,
    connection: WebSocketConnection,
    *,
    handler: Handler,
    encoders: EncoderRegistry,
    config: AppConfig,
    user: Any = None,
    app: Any = None,
) -> None:
    """Run *handler* on an accepted websocket, synchronously.

    A non-``None`` return value is written as binary messages. The socket
    is closed afterwards: 1000 on return, 1008 for ``HTTPError``, 1011 for
    anything else.
    """
    start = time.perf_counter()
    sink = WebSocketResponse(connection)
    ctx = Context(
        request,
        sink,
        user=user,
        connection=connection,
        encoders=encoders,
        app=app,
        chunk_size=config.chunk_size,
    )
    code = NORMAL_CLOSURE
    token = context_var.set(ctx)
    try:
        if config.default_content_type:
            ctx.content_type(config.default_content_type)
        result = handler(ctx)
        if result is not None:
            ctx.write_anything(result)
    except HTTPError as exc:
        logger.debug("websocket %s rejected: %s", request.path, exc)
        code = POLICY_VIOLATION
    except Exception:
        logger.exception("websocket %s failed", request.path)
        code = INTERNAL_ERROR
    finally:
        context_var.reset(token)
        try:
            connection.close(code)
        except OSError:
            logger.info("client disconnected during websocket %s", request.path)
        if config.access_log:
            access_logger.info(
                "WS %s %d %d %.1fms",
                request.url,
                sink.status,
                sink.written,
                (time.perf_counter() - start) * 1000,
            )
