"""Greeting endpoints. Stateless HTML snippets."""

import html

from stash.http.request import Request
from stash.http.response import HTML, Response

DEFAULT_VISITOR = "Unknown Visitor"


def index() -> Response:
    return Response("<h1>Hello World</h1>", content_type=HTML)


def hello(request: Request) -> Response:
    """``GET /hello?name=X``: greet *X*, HTML-escaped."""
    name = request.query.get("name", DEFAULT_VISITOR)
    return Response(f"<h1>Hello {html.escape(name)}</h1>", content_type=HTML)
