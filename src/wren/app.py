"""Wren application class.

Mutable during setup (handler, encoders, lifecycle hooks).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import inspect
import threading
from collections.abc import Callable
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import Handler
from wren.config import AppConfig
from wren.encoders import EncoderFactory, EncoderRegistry, default_registry
from wren.errors import ConfigurationError
from wren.server.handler import handle_request


class App:
    """The wren application: an ASGI callable around one handler.

    The handler receives a ``Context`` and may write to it directly,
    return a value for ``Context.write_anything``, or both::

        app = App(user={"greeting": "hi"})

        @app.handler
        def handle(ctx):
            ctx.content_type("json")
            return {"message": ctx.user["greeting"], "path": ctx.request.path}

    Routing is left to the handler (or to whatever wraps it).

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread freezes the encoder registry,
        even when several workers receive their first request at once.
        Handlers run in anyio worker threads, one Context each.
    """

    __slots__ = (
        "_encoders",
        "_freeze_lock",
        "_frozen",
        "_handler",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "user",
    )

    def __init__(
        self,
        handler: Handler | None = None,
        config: AppConfig | None = None,
        *,
        encoders: EncoderRegistry | None = None,
        user: Any = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.user: Any = user
        self._encoders: EncoderRegistry = encoders if encoders is not None else default_registry()
        self._handler: Handler | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        if handler is not None:
            self.handler(handler)

    # -- Setup --

    def handler(self, func: Handler) -> Handler:
        """Set the request handler. Usable as a decorator.

        Handlers are synchronous: they run in a worker thread and write
        through blocking calls.
        """
        self._check_not_frozen()
        if inspect.iscoroutinefunction(func):
            msg = (
                f"Handler {getattr(func, '__name__', func)!r} is async. Wren handlers are "
                "synchronous functions taking a Context; they run in a worker thread."
            )
            raise ConfigurationError(msg)
        self._handler = func
        return func

    def register_encoder(self, content_type: str, factory: EncoderFactory) -> None:
        """Bind *factory* to the exact *content_type* in this app's registry."""
        self._check_not_frozen()
        self._encoders.register(content_type, factory)

    @property
    def encoders(self) -> EncoderRegistry:
        """The registry every Context of this app serializes through."""
        return self._encoders

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly and delegates HTTP and websocket
        scopes to the request pipeline. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._handler is not None

        await handle_request(
            scope,
            receive,
            send,
            handler=self._handler,
            encoders=self._encoders,
            config=self.config,
            user=self.user,
            app=self,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs startup/shutdown hooks and signals completion to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        await self._run_hook(hook)
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await self._run_hook(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hook(hook: Callable[..., Any]) -> None:
        result = hook()
        if inspect.isawaitable(result):
            await result

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Validate setup and freeze the encoder registry.

        MUST only be called while holding _freeze_lock.
        """
        if self._handler is None:
            msg = "No handler configured. Pass one to App() or decorate it with @app.handler."
            raise ConfigurationError(msg)
        self._encoders.freeze()
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Set the handler and register encoders before the first request."
            )
            raise RuntimeError(msg)
