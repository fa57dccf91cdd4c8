"""Route groups — sub-routers mounted under a path prefix.

A group collects routes relative to its own root plus middleware that
applies to every one of them. ``App.mount(prefix, group)`` flattens the
group into the app's route table, so matching rules are identical for
grouped and top-level routes::

    admin = RouteGroup(middleware=[BearerAuth(token)])

    @admin.route("/kv", methods=["DELETE"])
    async def delete_all(store: Store) -> str: ...

    app.mount("/admin", admin)   # DELETE /admin/kv, auth required
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from stash._internal.types import Handler


@dataclass(frozen=True, slots=True)
class GroupRoute:
    """A route registered on a group, relative to the mount prefix."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None
    middleware: tuple[Callable[..., Any], ...]


class RouteGroup:
    """A set of routes sharing a prefix and middleware."""

    __slots__ = ("_middleware", "_routes")

    def __init__(self, *, middleware: Iterable[Callable[..., Any]] = ()) -> None:
        self._middleware: list[Callable[..., Any]] = list(middleware)
        self._routes: list[GroupRoute] = []

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        middleware: Iterable[Callable[..., Any]] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a group route via decorator. *path* is relative to the mount point."""

        def decorator(func: Handler) -> Handler:
            self._routes.append(GroupRoute(path, func, methods, name, tuple(middleware)))
            return func

        return decorator

    def add_middleware(self, middleware: Callable[..., Any]) -> None:
        """Add middleware that runs for every route in this group."""
        self._middleware.append(middleware)

    @property
    def middleware(self) -> tuple[Callable[..., Any], ...]:
        return tuple(self._middleware)

    @property
    def routes(self) -> tuple[GroupRoute, ...]:
        return tuple(self._routes)


def join_path(prefix: str, path: str) -> str:
    """Join a mount prefix and a relative route path.

    ``join_path("/admin", "/kv")`` -> ``"/admin/kv"``;
    ``join_path("/admin", "/")`` -> ``"/admin"``.
    """
    head = "/" + prefix.strip("/")
    tail = path.strip("/")
    if head == "/":
        return "/" + tail
    return f"{head}/{tail}" if tail else head
