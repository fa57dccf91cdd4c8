"""Inbound body size policy.

The app applies ``AppConfig.max_content_length`` to every request.
``BodyLimit`` is route middleware that replaces that cap for one
route, or removes it::

    @app.route("/kv/{key}", methods=["POST"], middleware=[BodyLimit.disabled()])
    async def put_value(...): ...

The limit is enforced when the body is read (``Request.body()``),
so routes that never read a body never pay for it.
"""

from __future__ import annotations

from stash.errors import ConfigurationError
from stash.http.request import Request
from stash.http.response import Response
from stash.middleware.protocol import Next


class BodyLimit:
    """Override the request body size limit for a route.

    ``max_bytes=None`` disables the limit entirely.
    """

    __slots__ = ("max_bytes",)

    def __init__(self, max_bytes: int | None) -> None:
        if max_bytes is not None and max_bytes < 0:
            msg = f"Body limit must be >= 0 or None, got {max_bytes!r}"
            raise ConfigurationError(msg)
        self.max_bytes = max_bytes

    @classmethod
    def disabled(cls) -> BodyLimit:
        """A limit that accepts bodies of any size."""
        return cls(None)

    def __repr__(self) -> str:
        return f"BodyLimit({self.max_bytes!r})"

    async def __call__(self, request: Request, next: Next) -> Response:
        return await next(request.with_body_limit(self.max_bytes))
