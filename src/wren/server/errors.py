"""Error handling for wren requests.

Maps ``HTTPError`` and unexpected failures onto the Context's abort
helpers. Once the response has started there is nothing left to send, so
the failure is only logged.
"""

import logging
import traceback

from wren.context import Context
from wren.errors import HTTPError

logger = logging.getLogger("wren.server")


def handle_http_error(ctx: Context, exc: HTTPError) -> None:
    """Answer an ``HTTPError`` raised by the handler."""
    request = ctx.request
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    if ctx.response.started:
        logger.warning(
            "HTTPError %d raised after the response started: %s %s",
            exc.status,
            request.method,
            request.path,
        )
        return

    for name, value in exc.headers:
        ctx.header().set(name, value)
    ctx.abort(exc.status, exc.detail or f"Error {exc.status}")


def handle_internal_error(ctx: Context, exc: Exception, *, debug: bool) -> None:
    """Answer an unexpected exception as a 500."""
    request = ctx.request
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)

    if ctx.response.started:
        return

    body = "Internal Server Error"
    if debug:
        body = f"{body}\n\n{''.join(traceback.format_exception(exc))}"
    ctx.abort(500, body)
