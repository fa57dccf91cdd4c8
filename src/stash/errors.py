"""Stash exception hierarchy.

Shared across Store, Router, App, handlers, and middleware so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class StashError(Exception):
    """Base for all stash-specific errors."""


class ConfigurationError(StashError):
    """Raised when app configuration is invalid.

    Typically caught at startup, before the first request is served.
    """


# ---------------------------------------------------------------------------
# HTTP errors
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HTTPError(StashError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and turns them into a plain-text response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class Unauthorized(HTTPError):  # noqa: N818
    """401 — missing or incorrect credentials."""

    def __init__(self, detail: str = "Unauthorized", scheme: str = "Bearer") -> None:
        super().__init__(
            status=401,
            detail=detail,
            headers=(("WWW-Authenticate", scheme),),
        )


class RequestTimeout(HTTPError):  # noqa: N818
    """408 — the pipeline did not produce a response before the deadline."""

    def __init__(self, detail: str = "Request timed out") -> None:
        super().__init__(status=408, detail=detail)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413 — request body exceeds the limit in effect for the route."""

    def __init__(self, limit: int, detail: str = "") -> None:
        super().__init__(
            status=413,
            detail=detail or f"Payload Too Large (limit {limit} bytes)",
        )


class ClientDisconnected(StashError):  # noqa: N818
    """The client went away before the request body was fully received.

    No response can be delivered, and a partial body must not be used.
    """


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------


class StoreError(StashError):
    """Base for errors raised by the key-value store."""


class KeyNotFound(StoreError):  # noqa: N818
    """The requested key is not present in the store."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Key not found: {key!r}")
        self.key = key


class StoreCorrupted(StoreError):  # noqa: N818
    """The store entered its terminal state and can no longer be used.

    Set when an exception escapes while the exclusive lock is held,
    since the mapping may have been left half-updated.
    """

    def __init__(self, detail: str = "Store is corrupted") -> None:
        super().__init__(detail)
