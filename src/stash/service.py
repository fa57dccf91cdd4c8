"""The stash HTTP service — wires the store, handlers, and middleware.

======  =================  =====  ==============================
Method  Path               Auth   Handler
======  =================  =====  ==============================
GET     /                  -      greeting.index
GET     /hello?name=X      -      greeting.hello
GET     /kv/{key}          -      handlers.get_value
POST    /kv/{key}          -      handlers.put_value (no body cap)
DELETE  /admin/kv          token  handlers.delete_all
DELETE  /admin/kv/{key}    token  handlers.delete_key
======  =================  =====  ==============================

Every request is logged, then bounded by ``AppConfig.request_timeout``.
"""

import logging

from stash import greeting, handlers
from stash.app import App
from stash.config import AppConfig
from stash.errors import ConfigurationError
from stash.middleware import BearerAuth, BodyLimit, RequestLogger, Timeout
from stash.routing.group import RouteGroup
from stash.store import Store

logger = logging.getLogger("stash.server")


def create_app(config: AppConfig | None = None, store: Store | None = None) -> App:
    """Build the service.

    *store* is shared by every request; a fresh empty one is created
    when omitted. Raises ``ConfigurationError`` without an admin token.
    """
    config = config or AppConfig()
    if not config.admin_token:
        msg = "An admin token is required. Set STASH_ADMIN_TOKEN or pass --admin-token."
        raise ConfigurationError(msg)

    kv = store if store is not None else Store()
    app = App(config)
    app.provide(Store, lambda: kv)

    app.add_middleware(RequestLogger())
    app.add_middleware(Timeout(config.request_timeout))

    app.route("/")(greeting.index)
    app.route("/hello")(greeting.hello)
    app.route("/kv/{key}", methods=["GET"])(handlers.get_value)
    app.route("/kv/{key}", methods=["POST"], middleware=[BodyLimit.disabled()])(
        handlers.put_value
    )

    admin = RouteGroup(middleware=[BearerAuth(config.admin_token)])
    admin.route("/kv", methods=["DELETE"])(handlers.delete_all)
    admin.route("/kv/{key}", methods=["DELETE"])(handlers.delete_key)
    app.mount(config.admin_prefix, admin)

    @app.on_startup
    def _ready() -> None:
        logger.info("stash ready: %d keys, admin routes under %s", len(kv), config.admin_prefix)

    @app.on_shutdown
    def _drain() -> None:
        if kv.corrupted:
            logger.warning("Shutting down with a corrupted store")
            return
        logger.info("Shutting down, dropping %d keys", len(kv))
        kv.clear()

    return app
