"""Request logging middleware.

Logs ``METHOD PATH`` on the ``stash.access`` logger before forwarding.
Never alters the response and never fails the request.
"""

import logging

from stash.http.request import Request
from stash.http.response import Response
from stash.middleware.protocol import Next

logger = logging.getLogger("stash.access")


class RequestLogger:
    """Record every request line before it is processed.

    Usage::

        app.add_middleware(RequestLogger())
    """

    __slots__ = ("_level", "_logger")

    def __init__(self, *, level: int = logging.INFO, log: logging.Logger | None = None) -> None:
        self._level = level
        self._logger = log or logger

    async def __call__(self, request: Request, next: Next) -> Response:
        self._logger.log(self._level, "%s %s", request.method, request.url)
        return await next(request)
