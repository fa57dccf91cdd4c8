"""Content negotiation — maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

from typing import Any

from stash.errors import ConfigurationError
from stash.http.response import OCTET_STREAM, PLAIN_TEXT, Response


def negotiate(value: Any) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``            -> pass through
    2. ``str``                 -> 200, text/plain
    3. ``bytes``/``bytearray`` -> 200, application/octet-stream
    4. ``None``                -> 204, empty body
    5. ``(value, int)``        -> negotiate value, override status
    6. ``(value, int, dict)``  -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case str():
            return Response(body=value, content_type=PLAIN_TEXT)
        case bytes() | bytearray():
            return Response(body=bytes(value), content_type=OCTET_STREAM)
        case None:
            return Response(body=b"", status=204)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return Response, str, bytes, or a (value, status) tuple."
            )
            raise ConfigurationError(msg)
