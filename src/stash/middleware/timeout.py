"""Per-request deadline.

Bounds the time between entering this layer and receiving a response.
On expiry the inner pipeline is cancelled and ``RequestTimeout`` (408)
is raised for the error layer to render.

Cancellation is cooperative. Store calls run in worker threads with
``abandon_on_cancel=True``: the client gets its 408 on time, but an
abandoned store call may still finish (and mutate state) afterwards.
"""

import logging

import anyio

from stash.errors import ConfigurationError, RequestTimeout
from stash.http.request import Request
from stash.http.response import Response
from stash.middleware.protocol import Next

logger = logging.getLogger("stash.server")


class Timeout:
    """Fail requests that take longer than *seconds*.

    Usage::

        app.add_middleware(Timeout(5.0))
    """

    __slots__ = ("seconds",)

    def __init__(self, seconds: float) -> None:
        if seconds <= 0:
            msg = f"Timeout must be positive, got {seconds!r}"
            raise ConfigurationError(msg)
        self.seconds = seconds

    async def __call__(self, request: Request, next: Next) -> Response:
        # Only our own deadline maps to 408; errors from inside pass through.
        with anyio.move_on_after(self.seconds) as scope:
            response = await next(request)
        if scope.cancelled_caught:
            logger.warning(
                "Request timed out after %.2fs: %s %s", self.seconds, request.method, request.path
            )
            raise RequestTimeout()
        return response
