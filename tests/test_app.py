"""Tests for the App class: registration, freezing, injection, errors, lifespan."""

import logging
from typing import Any

import pytest

from stash.app import App
from stash.errors import ConfigurationError, HTTPError, NotFound
from stash.http.request import Request
from stash.http.response import Response
from stash.routing.group import RouteGroup
from stash.testing import TestClient


class TestRegistration:
    def test_route_decorator_returns_handler(self) -> None:
        app = App()

        def index() -> str:
            return "ok"

        assert app.route("/")(index) is index

    def test_router_lists_routes(self) -> None:
        app = App()
        app.route("/")(lambda: "ok")
        app.route("/kv/{key}", methods=["GET", "POST"])(lambda key: key)
        assert sorted(r.path for r in app.router.routes) == ["/", "/kv/{key}"]

    def test_methods_default_to_get(self) -> None:
        app = App()
        app.route("/")(lambda: "ok")
        assert app.router.routes[0].methods == frozenset({"GET"})

    def test_methods_uppercased(self) -> None:
        app = App()
        app.route("/kv/{key}", methods=["post"])(lambda key: key)
        assert app.router.routes[0].methods == frozenset({"POST"})

    def test_invalid_route_fails_at_freeze(self) -> None:
        app = App()
        app.route("/kv/<key>")(lambda key: key)
        with pytest.raises(ConfigurationError):
            app.router

    def test_mount_prefixes_group_routes(self) -> None:
        app = App()
        group = RouteGroup()
        group.route("/kv", methods=["DELETE"])(lambda: "all")
        group.route("/kv/{key}", methods=["DELETE"])(lambda key: key)
        app.mount("/admin", group)
        assert sorted(r.path for r in app.router.routes) == ["/admin/kv", "/admin/kv/{key}"]


class TestFreeze:
    def test_cannot_add_route_after_freeze(self) -> None:
        app = App()
        app.router
        with pytest.raises(RuntimeError):
            app.route("/late")(lambda: "late")

    def test_cannot_add_middleware_after_freeze(self) -> None:
        app = App()
        app.router

        async def mw(request, next):
            return await next(request)

        with pytest.raises(RuntimeError):
            app.add_middleware(mw)

    def test_cannot_mount_after_freeze(self) -> None:
        app = App()
        app.router
        with pytest.raises(RuntimeError):
            app.mount("/admin", RouteGroup())

    def test_freeze_is_idempotent(self) -> None:
        app = App()
        app.route("/")(lambda: "ok")
        assert app.router is app.router


class TestDispatch:
    @pytest.mark.asyncio
    async def test_path_param_injected(self) -> None:
        app = App()

        @app.route("/kv/{key}")
        def show(key: str) -> str:
            return f"key={key}"

        async with TestClient(app) as client:
            response = await client.get("/kv/greeting")
        assert response.text == "key=greeting"

    @pytest.mark.asyncio
    async def test_request_injected(self) -> None:
        app = App()

        @app.route("/who")
        def who(request: Request) -> str:
            return request.headers.get("x-user", "anonymous")

        async with TestClient(app) as client:
            response = await client.get("/who", headers={"X-User": "ada"})
        assert response.text == "ada"

    @pytest.mark.asyncio
    async def test_provider_injected_by_annotation(self) -> None:
        class Counter:
            def __init__(self) -> None:
                self.hits = 0

        counter = Counter()
        app = App()
        app.provide(Counter, lambda: counter)

        @app.route("/hit")
        def hit(counter: Counter) -> str:
            counter.hits += 1
            return str(counter.hits)

        async with TestClient(app) as client:
            await client.get("/hit")
            response = await client.get("/hit")
        assert response.text == "2"

    @pytest.mark.asyncio
    async def test_not_found(self) -> None:
        app = App()
        async with TestClient(app) as client:
            response = await client.get("/missing")
        assert response.status == 404

    @pytest.mark.asyncio
    async def test_method_not_allowed(self) -> None:
        app = App()
        app.route("/kv/{key}", methods=["GET", "POST"])(lambda key: key)

        async with TestClient(app) as client:
            response = await client.delete("/kv/x")
        assert response.status == 405
        assert response.header("allow") == "GET, POST"

    @pytest.mark.asyncio
    async def test_head_has_no_body(self) -> None:
        app = App()
        app.route("/", methods=["HEAD"])(lambda: "Hello")

        async with TestClient(app) as client:
            response = await client.request("HEAD", "/")
        assert response.status == 200
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_route_middleware_runs_after_match(self) -> None:
        seen: list[dict[str, str]] = []

        async def capture(request, next):
            seen.append(request.path_params)
            return await next(request)

        app = App()
        app.route("/kv/{key}", middleware=[capture])(lambda key: key)

        async with TestClient(app) as client:
            await client.get("/kv/a")
        assert seen == [{"key": "a"}]

    @pytest.mark.asyncio
    async def test_group_middleware_runs_before_route_middleware(self) -> None:
        order: list[str] = []

        def tag(name: str):
            async def mw(request, next):
                order.append(name)
                return await next(request)

            return mw

        app = App()
        group = RouteGroup(middleware=[tag("group")])
        group.route("/kv", middleware=[tag("route")])(lambda: "ok")
        app.mount("/admin", group)

        async with TestClient(app) as client:
            await client.get("/admin/kv")
        assert order == ["group", "route"]


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_http_error_rendered_as_plain_text(self) -> None:
        app = App()

        @app.route("/teapot")
        def teapot() -> str:
            raise HTTPError(status=418, detail="I'm a teapot")

        async with TestClient(app) as client:
            response = await client.get("/teapot")
        assert response.status == 418
        assert response.text == "I'm a teapot"
        assert response.content_type.startswith("text/plain")

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_generic_500(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        app = App()

        @app.route("/boom")
        def boom() -> str:
            raise ValueError("secret internals")

        with caplog.at_level(logging.ERROR, logger="stash.server"):
            async with TestClient(app) as client:
                response = await client.get("/boom")

        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert "secret" not in response.text
        assert any(r.exc_info for r in caplog.records)

    @pytest.mark.asyncio
    async def test_status_error_handler(self) -> None:
        app = App()

        @app.error(404)
        def not_found(request: Request) -> str:
            return f"nothing at {request.path}"

        async with TestClient(app) as client:
            response = await client.get("/missing")
        assert response.status == 404
        assert response.text == "nothing at /missing"

    @pytest.mark.asyncio
    async def test_exception_type_error_handler(self) -> None:
        app = App()

        @app.route("/boom")
        def boom() -> str:
            raise KeyError("k")

        @app.error(KeyError)
        def on_key_error(request: Request, exc: Exception) -> Any:
            return ("missing", 422)

        async with TestClient(app) as client:
            response = await client.get("/boom")
        assert response.status == 422
        assert response.text == "missing"

    @pytest.mark.asyncio
    async def test_zero_arg_error_handler(self) -> None:
        app = App()
        app.error(NotFound)(lambda: Response("gone"))

        async with TestClient(app) as client:
            response = await client.get("/missing")
        assert response.status == 404
        assert response.text == "gone"


def _lifespan_receiver(*types: str):
    messages = [{"type": t} for t in types]

    async def receive() -> dict[str, Any]:
        return messages.pop(0)

    return receive


class TestLifespan:
    @pytest.mark.asyncio
    async def test_startup_and_shutdown_hooks(self) -> None:
        events: list[str] = []
        app = App()

        @app.on_startup
        async def start() -> None:
            events.append("start")

        @app.on_shutdown
        def stop() -> None:
            events.append("stop")

        sent: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        receive = _lifespan_receiver("lifespan.startup", "lifespan.shutdown")
        await app({"type": "lifespan"}, receive, send)

        assert events == ["start", "stop"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    @pytest.mark.asyncio
    async def test_startup_failure_reported(self) -> None:
        app = App()

        @app.on_startup
        def start() -> None:
            raise RuntimeError("no database")

        sent: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, _lifespan_receiver("lifespan.startup"), send)

        assert sent == [{"type": "lifespan.startup.failed", "message": "no database"}]

    @pytest.mark.asyncio
    async def test_startup_freezes_app(self) -> None:
        app = App()
        sent: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        receive = _lifespan_receiver("lifespan.startup", "lifespan.shutdown")
        await app({"type": "lifespan"}, receive, send)

        with pytest.raises(RuntimeError):
            app.route("/late")(lambda: "late")
