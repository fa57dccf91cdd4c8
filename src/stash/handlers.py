"""Key-value route handlers.

Translate HTTP input into ``Store`` calls and store results into
responses. The store is injected by type (``app.provide(Store, ...)``).

Store calls are blocking, so they run on anyio worker threads with
``abandon_on_cancel=True``. A request that hits its deadline while
waiting on the store lock gets its 408 on time; the abandoned call may
still complete afterwards.
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import anyio

from stash.errors import HTTPError, KeyNotFound, StoreCorrupted
from stash.http.request import Request
from stash.http.response import Response
from stash.store import Store

logger = logging.getLogger("stash.server")

DATABASE_CORRUPTED = "Database corrupted"
KEY_NOT_FOUND = "Key not found"


def store_errors[**P, R](func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Map ``StoreCorrupted`` to a 500 ``Database corrupted`` response."""

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await func(*args, **kwargs)
        except StoreCorrupted as exc:
            logger.error("Store unusable in %s: %s", func.__name__, exc)
            raise HTTPError(status=500, detail=DATABASE_CORRUPTED) from exc

    return wrapper


async def _run(func: Callable[..., Any], *args: Any) -> Any:
    return await anyio.to_thread.run_sync(func, *args, abandon_on_cancel=True)


@store_errors
async def get_value(key: str, store: Store) -> Response | bytes:
    """``GET /kv/{key}``: the raw stored bytes."""
    try:
        return await _run(store.get, key)
    except KeyNotFound:
        return Response(KEY_NOT_FOUND, status=404)


@store_errors
async def put_value(key: str, request: Request, store: Store) -> str:
    """``POST /kv/{key}``: store the full request body under *key*."""
    body = await request.body()
    await _run(store.put, key, body)
    return "Inserted key"


@store_errors
async def delete_key(key: str, store: Store) -> str:
    """``DELETE /admin/kv/{key}``: succeeds whether or not *key* existed."""
    await _run(store.delete, key)
    return "Deleted entry"


@store_errors
async def delete_all(store: Store) -> str:
    """``DELETE /admin/kv``: wipe the store."""
    await _run(store.clear)
    return "Deleted all entries"
