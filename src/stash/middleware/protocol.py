"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from stash.http.request import Request
from stash.http.response import Response

# The next handler in the middleware chain
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for stash middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class Timeout:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...


def chain(middleware: tuple[Callable[..., object], ...], endpoint: Next) -> Next:
    """Compose *middleware* around *endpoint*.

    The first middleware is outermost: it sees the request first and
    the response last.
    """
    handler = endpoint
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Middleware = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler
