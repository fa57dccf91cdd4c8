"""Stash application class.

Mutable during setup (route registration, mounts, middleware, providers).
Frozen at runtime when the first ASGI scope arrives.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from stash._internal.asgi import Receive, Scope, Send
from stash._internal.invoke import invoke
from stash._internal.types import ErrorHandler, Handler
from stash.config import AppConfig
from stash.middleware.protocol import Middleware
from stash.routing.group import RouteGroup, join_path
from stash.routing.route import Route
from stash.routing.router import Router
from stash.server.handler import handle_request

logger = logging.getLogger("stash.server")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None
    middleware: tuple[Callable[..., Any], ...] = ()


class App:
    """The stash application.

    Mutable during setup (route registration, middleware, providers).
    Frozen at runtime when ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded. The freeze transition uses a
        Lock + double-check so exactly one thread compiles the app, even
        if several server workers deliver their first request at once.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        "_providers",
        # Compiled state (populated by _freeze)
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._providers: dict[type, Callable[..., Any]] = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set by _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        middleware: Iterable[Callable[..., Any]] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for the path parameter.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name.
            middleware: Route middleware, run after matching and before
                the handler (e.g. ``BodyLimit.disabled()``).
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending_routes.append(
                _PendingRoute(path, func, methods, name, tuple(middleware))
            )
            return func

        return decorator

    def mount(self, prefix: str, group: RouteGroup) -> None:
        """Mount a route group under *prefix*.

        Every group route is registered at ``prefix + route.path`` with
        the group's middleware ahead of the route's own.
        """
        self._check_not_frozen()
        for route in group.routes:
            self._pending_routes.append(
                _PendingRoute(
                    join_path(prefix, route.path),
                    route.handler,
                    route.methods,
                    route.name,
                    group.middleware + route.middleware,
                )
            )

    # -- Service injection --

    def provide(self, annotation: type, factory: Callable[..., Any]) -> None:
        """Register a provider factory for dependency injection.

        When a handler parameter's type annotation matches *annotation*,
        stash calls *factory* (with no arguments) and injects the result::

            store = Store()
            app.provide(Store, lambda: store)

            @app.route("/kv/{key}")
            async def get_value(key: str, store: Store) -> bytes: ...
        """
        self._check_not_frozen()
        self._providers[annotation] = factory

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline. First added runs outermost."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

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
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order during ASGI lifespan shutdown,
        after the server stops accepting new requests.
        """
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    @property
    def router(self) -> Router:
        """The compiled router. Freezes the app on first access."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles the lifespan scope directly, then delegates HTTP scopes
        to the request pipeline. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            providers=self._providers or None,
            max_content_length=self.config.max_content_length,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def startup(self) -> None:
        """Run startup hooks in registration order."""
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        """Run shutdown hooks in registration order."""
        for hook in self._shutdown_hooks:
            await invoke(hook)

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
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        router = Router()
        for pending in self._pending_routes:
            methods = frozenset(m.upper() for m in (pending.methods or ["GET"]))
            router.add(
                Route(
                    path=pending.path,
                    handler=pending.handler,
                    methods=methods,
                    name=pending.name,
                    middleware=pending.middleware,
                )
            )
        router.compile()
        self._router = router
        self._middleware = tuple(self._middleware_list)
        self._frozen = True
        logger.debug(
            "App frozen: %d routes, %d middleware", len(router.routes), len(self._middleware)
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and providers before serving."
            )
            raise RuntimeError(msg)
