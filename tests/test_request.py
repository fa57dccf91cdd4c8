"""Tests for stash.http — request metadata, headers, query params and body limits."""

from typing import Any

import pytest

from stash.errors import ClientDisconnected, PayloadTooLarge
from stash.http.headers import Headers, QueryParams
from stash.http.request import Request


def _receiver(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ] or [{"type": "http.request", "body": b"", "more_body": False}]

    async def receive() -> dict[str, Any]:
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive


def _request(
    *chunks: bytes,
    headers: tuple[tuple[bytes, bytes], ...] = (),
    query_string: bytes = b"",
    body_limit: int | None = None,
) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/kv/greeting",
        "headers": list(headers),
        "query_string": query_string,
        "client": ("10.0.0.1", 5000),
    }
    return Request.from_asgi(scope, _receiver(*chunks), body_limit=body_limit)


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers(((b"content-type", b"text/plain"),))
        assert headers["Content-Type"] == "text/plain"
        assert headers.get("CONTENT-TYPE") == "text/plain"
        assert "content-TYPE" in headers

    def test_names_are_lowercased(self) -> None:
        headers = Headers(((b"X-Token", b"abc"),))
        assert list(headers) == ["x-token"]

    def test_repeated_header(self) -> None:
        headers = Headers(((b"accept", b"text/html"), (b"accept", b"text/plain")))
        assert headers["accept"] == "text/html"
        assert headers.get_list("Accept") == ["text/html", "text/plain"]
        assert len(headers) == 1

    def test_missing(self) -> None:
        headers = Headers()
        assert headers.get("authorization") is None
        assert headers.get("authorization", "none") == "none"
        assert headers.get_list("authorization") == []
        with pytest.raises(KeyError):
            headers["authorization"]

    def test_raw_preserved(self) -> None:
        raw = ((b"X-Token", b"abc"),)
        assert Headers(raw).raw == raw


class TestQueryParams:
    def test_single_value(self) -> None:
        query = QueryParams(b"name=Ada")
        assert query["name"] == "Ada"

    def test_blank_value_kept(self) -> None:
        query = QueryParams(b"name=")
        assert "name" in query
        assert query.get("name") == ""

    def test_repeated_value(self) -> None:
        query = QueryParams(b"tag=a&tag=b")
        assert query.get("tag") == "a"
        assert query.get_list("tag") == ["a", "b"]

    def test_percent_decoding(self) -> None:
        query = QueryParams(b"name=Ada%20Lovelace")
        assert query["name"] == "Ada Lovelace"

    def test_empty(self) -> None:
        query = QueryParams()
        assert len(query) == 0
        assert query.get("name") is None
        assert query.raw == b""


class TestRequestMetadata:
    def test_from_asgi(self) -> None:
        request = _request(
            headers=((b"content-type", b"application/octet-stream"),),
            query_string=b"a=1",
        )
        assert request.method == "POST"
        assert request.path == "/kv/greeting"
        assert request.client == ("10.0.0.1", 5000)
        assert request.http_version == "1.1"
        assert request.content_type == "application/octet-stream"
        assert request.path_params == {}

    def test_url_includes_query(self) -> None:
        assert _request(query_string=b"name=Ada").url == "/kv/greeting?name=Ada"
        assert _request().url == "/kv/greeting"

    def test_content_length(self) -> None:
        assert _request(headers=((b"content-length", b"12"),)).content_length == 12
        assert _request(headers=((b"content-length", b"abc"),)).content_length is None
        assert _request().content_length is None

    def test_with_path_params(self) -> None:
        request = _request()
        bound = request.with_path_params({"key": "greeting"})
        assert bound.path_params == {"key": "greeting"}
        assert request.path_params == {}

    def test_with_body_limit(self) -> None:
        request = _request(body_limit=10)
        assert request.with_body_limit(None).body_limit is None
        assert request.body_limit == 10


class TestRequestBody:
    @pytest.mark.asyncio
    async def test_single_message(self) -> None:
        request = _request(b"Hello World")
        assert await request.body() == b"Hello World"

    @pytest.mark.asyncio
    async def test_multiple_chunks(self) -> None:
        request = _request(b"Hello", b" ", b"World")
        assert await request.body() == b"Hello World"

    @pytest.mark.asyncio
    async def test_body_cached(self) -> None:
        request = _request(b"once")
        assert await request.body() == b"once"
        assert await request.body() == b"once"

    @pytest.mark.asyncio
    async def test_cache_survives_path_binding(self) -> None:
        request = _request(b"payload")
        await request.body()
        bound = request.with_path_params({"key": "k"})
        assert await bound.body() == b"payload"

    @pytest.mark.asyncio
    async def test_text(self) -> None:
        request = _request("héllo".encode())
        assert await request.text() == "héllo"

    @pytest.mark.asyncio
    async def test_empty_body(self) -> None:
        request = _request()
        assert await request.body() == b""

    @pytest.mark.asyncio
    async def test_within_limit(self) -> None:
        request = _request(b"12345", body_limit=5)
        assert await request.body() == b"12345"

    @pytest.mark.asyncio
    async def test_declared_length_over_limit(self) -> None:
        request = _request(b"x", headers=((b"content-length", b"100"),), body_limit=10)
        with pytest.raises(PayloadTooLarge) as exc_info:
            await request.body()
        assert exc_info.value.status == 413

    @pytest.mark.asyncio
    async def test_streamed_size_over_limit(self) -> None:
        request = _request(b"aaaa", b"bbbb", b"cccc", body_limit=10)
        with pytest.raises(PayloadTooLarge):
            await request.body()

    @pytest.mark.asyncio
    async def test_no_limit(self) -> None:
        big = b"z" * 100_000
        request = _request(big[:50_000], big[50_000:], body_limit=None)
        assert await request.body() == big

    @pytest.mark.asyncio
    async def test_disconnect_mid_body(self) -> None:
        messages = [
            {"type": "http.request", "body": b"Hello ", "more_body": True},
            {"type": "http.disconnect"},
        ]

        async def receive() -> dict[str, Any]:
            return messages.pop(0)

        scope = {"type": "http", "method": "POST", "path": "/kv/k", "headers": []}
        request = Request.from_asgi(scope, receive)
        with pytest.raises(ClientDisconnected):
            await request.body()
        assert "_body" not in request._cache
