"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field, replace
from typing import Any

from stash._internal.asgi import Receive
from stash.errors import ClientDisconnected, PayloadTooLarge
from stash.http.headers import Headers, QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    The body is read once through ``.body()`` and cached.

    ``body_limit`` is the maximum body size in bytes, or ``None`` for
    no limit. It starts at the app-wide default and route middleware
    (``BodyLimit``) may replace it via ``with_body_limit()``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None
    body_limit: int | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    # Private: mutable cache for the body
    # (dict contents are mutable even though the field reference is frozen)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Path plus query string, as requested."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    # -- Derived copies --

    def with_path_params(self, path_params: dict[str, str]) -> Request:
        """Return a copy bound to the matched route's path parameters.

        The body cache is shared so a body read earlier is not lost.
        """
        return replace(self, path_params=path_params)

    def with_body_limit(self, limit: int | None) -> Request:
        """Return a copy with a different body size limit (``None`` = unlimited)."""
        return replace(self, body_limit=limit)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.

        Raises ``PayloadTooLarge`` if the declared or received size
        exceeds ``body_limit``.
        """
        if "_body" in self._cache:
            return self._cache["_body"]

        limit = self.body_limit
        declared = self.content_length
        if limit is not None and declared is not None and declared > limit:
            raise PayloadTooLarge(limit)

        chunks: list[bytes] = []
        size = 0
        async for chunk in self.stream():
            size += len(chunk)
            if limit is not None and size > limit:
                raise PayloadTooLarge(limit)
            chunks.append(chunk)

        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the raw request body in chunks, without size checks.

        Raises ``ClientDisconnected`` if the client goes away first.
        """
        while True:
            message = await self._receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnected()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        """Read the body as text (UTF-8)."""
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(
        cls,
        scope: dict[str, Any],
        receive: Receive,
        *,
        body_limit: int | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            body_limit=body_limit,
            _receive=receive,
        )
