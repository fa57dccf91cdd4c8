"""Error normalization for stash requests.

The outermost layer of the pipeline. Maps ``HTTPError`` exceptions and
unexpected failures to plain-text Responses, using registered error
handlers when present. Failure details are logged, never sent.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from stash.errors import HTTPError
from stash.http.request import Request
from stash.http.response import Response
from stash.server.negotiation import negotiate

logger = logging.getLogger("stash.server")

INTERNAL_SERVER_ERROR = "Internal Server Error"


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc) args.
    Supports both sync and async error handlers.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result
    return negotiate(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
) -> Response:
    """Map an HTTPError to a Response using registered error handlers."""
    if exc.status >= 500:
        logger.error("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)
    else:
        logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.detail)

    # Try exact exception type, then status code
    handler = error_handlers.get(type(exc)) or error_handlers.get(exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the error status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    response = Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: dict[int | type, Callable[..., Any]],
) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    if isinstance(exc, OSError):
        logger.error("500 %s %s — I/O error: %s", request.method, request.path, exc)
    else:
        logger.exception("500 %s %s", request.method, request.path)

    handler = error_handlers.get(type(exc)) or error_handlers.get(500)
    if handler is not None:
        return await call_error_handler(handler, request, exc)

    return Response(body=INTERNAL_SERVER_ERROR, status=500)
