"""Bearer token authorization for privileged routes.

Requires ``Authorization: Bearer <token>`` matching a configured
secret. Rejected requests short-circuit with ``Unauthorized`` (401)
before the handler, or the store, is touched.

Usage::

    admin = RouteGroup(middleware=[BearerAuth(config.admin_token)])
    app.mount("/admin", admin)
"""

import hmac
import logging

from stash.audit import emit_security_event
from stash.errors import ConfigurationError, Unauthorized
from stash.http.request import Request
from stash.http.response import Response
from stash.middleware.protocol import Next

logger = logging.getLogger("stash.server")


class BearerAuth:
    """Compare the request's bearer token with a fixed secret.

    The comparison is constant-time. Missing headers, other schemes,
    and wrong tokens are all rejected the same way, so a client cannot
    tell them apart.
    """

    __slots__ = ("_header", "_scheme", "_token")

    def __init__(
        self,
        token: str,
        *,
        header: str = "Authorization",
        scheme: str = "Bearer",
    ) -> None:
        if not token:
            msg = (
                "BearerAuth requires a non-empty token. "
                "Set STASH_ADMIN_TOKEN or AppConfig(admin_token=...)."
            )
            raise ConfigurationError(msg)
        self._token = token.encode("utf-8")
        self._header = header
        self._scheme = scheme

    def _extract_token(self, request: Request) -> str | None:
        """Extract the bearer token from the configured header."""
        value = request.headers.get(self._header)
        if value is None:
            return None

        scheme, _, token = value.partition(" ")
        if scheme.lower() != self._scheme.lower():
            return None

        token = token.strip()
        return token or None

    async def __call__(self, request: Request, next: Next) -> Response:
        token = self._extract_token(request)
        if token is None or not hmac.compare_digest(token.encode("utf-8"), self._token):
            logger.info("Rejected unauthorized request: %s %s", request.method, request.path)
            emit_security_event(
                "auth.bearer.rejected",
                request=request,
                details={"reason": "missing" if token is None else "mismatch"},
            )
            raise Unauthorized(scheme=self._scheme)
        return await next(request)
