"""Invoke helpers — call sync or async callables uniformly.

Handlers, error handlers, and lifecycle hooks can be ``def`` or
``async def``. The sync/async check lives here and nowhere else.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
