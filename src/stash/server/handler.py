"""ASGI handler — translates ASGI scope/messages to stash types.

The only component that touches raw ASGI HTTP messages directly.
Converts the scope to a typed Request, runs the pipeline, and sends
the Response back through ASGI send().

Pipeline, outermost first::

    error normalization -> app middleware -> router match
        -> route middleware -> handler
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from stash._internal.asgi import Receive, Scope, Send
from stash._internal.invoke import invoke
from stash.errors import ClientDisconnected, HTTPError
from stash.http.request import Request
from stash.http.response import Response
from stash.middleware.protocol import chain
from stash.routing.route import RouteMatch
from stash.routing.router import Router
from stash.server.errors import handle_http_error, handle_internal_error
from stash.server.negotiation import negotiate
from stash.server.sender import send_response

logger = logging.getLogger("stash.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    providers: dict[type, Callable[..., Any]] | None = None,
    max_content_length: int | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive, body_limit=max_content_length)

    async def dispatch(req: Request) -> Response:
        match = router.match(req.method, req.path)
        req = req.with_path_params(match.path_params)

        async def endpoint(inner: Request) -> Response:
            return await _invoke_handler(match, inner, providers=providers)

        return await chain(match.route.middleware, endpoint)(req)

    try:
        response = await chain(middleware, dispatch)(request)
    except ClientDisconnected:
        logger.info("Client disconnected mid-request: %s %s", request.method, request.path)
        return
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers)

    await send_response(response, send, head=request.method == "HEAD")


async def _invoke_handler(
    match: RouteMatch,
    request: Request,
    *,
    providers: dict[type, Callable[..., Any]] | None = None,
) -> Response:
    """Call the matched route handler and negotiate its return value."""
    handler = match.route.handler
    kwargs = _build_handler_kwargs(handler, request, request.path_params, providers)
    result = await invoke(handler, **kwargs)
    return negotiate(result)


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
    providers: dict[type, Callable[..., Any]] | None = None,
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from request + path params.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name)
    3. Service providers (by type annotation via ``app.provide()``)
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            kwargs[name] = path_params[name]
        elif (
            providers
            and param.annotation is not inspect.Parameter.empty
            and param.annotation in providers
        ):
            kwargs[name] = providers[param.annotation]()

    return kwargs
