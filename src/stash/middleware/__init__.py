"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    BearerAuth -- Bearer token check for privileged route groups
    BodyLimit -- Per-route override of the request body size cap
    RequestLogger -- Log ``METHOD PATH`` for every request
    Timeout -- Per-request deadline, 408 on expiry
"""

from stash.middleware.access_log import RequestLogger
from stash.middleware.auth import BearerAuth
from stash.middleware.limits import BodyLimit
from stash.middleware.protocol import Middleware, Next, chain
from stash.middleware.timeout import Timeout

__all__ = [
    "BearerAuth",
    "BodyLimit",
    "Middleware",
    "Next",
    "RequestLogger",
    "Timeout",
    "chain",
]
