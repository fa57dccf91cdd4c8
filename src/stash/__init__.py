"""Stash — a small HTTP key-value service.

Clients write and read opaque byte values under string keys; holders of
the admin token can delete single keys or wipe the store.

Basic usage::

    from stash import AppConfig, create_app

    app = create_app(AppConfig(admin_token="s3cr3t"))

    # any ASGI server, e.g.
    #   uvicorn.run(app, host="127.0.0.1", port=3000)
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "KeyNotFound",
    "Middleware",
    "Next",
    "Request",
    "Response",
    "RouteGroup",
    "StashError",
    "Store",
    "StoreCorrupted",
    "create_app",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import stash`` fast while providing a clean top-level API.
    """
    if name == "App":
        from stash.app import App

        return App

    if name == "AppConfig":
        from stash.config import AppConfig

        return AppConfig

    if name == "Request":
        from stash.http.request import Request

        return Request

    if name == "Response":
        from stash.http.response import Response

        return Response

    if name == "RouteGroup":
        from stash.routing.group import RouteGroup

        return RouteGroup

    if name in ("Middleware", "Next"):
        from stash.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "Store":
        from stash.store import Store

        return Store

    if name == "create_app":
        from stash.service import create_app

        return create_app

    if name in ("ConfigurationError", "HTTPError", "KeyNotFound", "StashError", "StoreCorrupted"):
        from stash import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
