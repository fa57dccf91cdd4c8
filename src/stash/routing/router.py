"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. Each pattern may contain at
most one ``{name}`` parameter segment; a parameter matches exactly one
non-empty path segment.
"""

from stash.errors import ConfigurationError, MethodNotAllowed, NotFound
from stash.routing.route import PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/"          -> []
        "/kv"        -> [PathSegment("kv")]
        "/kv/{key}"  -> [PathSegment("kv"), PathSegment("{key}", is_param=True, param_name="key")]

    Raises ``ConfigurationError`` for ``<name>`` style parameters, empty
    ``{}`` parameters, and patterns with more than one parameter.
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses <param> syntax; "
                f"write path parameters as {{param}} instead."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            name = part[1:-1].strip()
            if not name:
                msg = f"Route {path!r} has an unnamed path parameter."
                raise ConfigurationError(msg)
            segments.append(PathSegment(value=part, is_param=True, param_name=name))
        else:
            segments.append(PathSegment(value=part))

    if sum(seg.is_param for seg in segments) > 1:
        msg = f"Route {path!r} declares more than one path parameter."
        raise ConfigurationError(msg)
    return segments


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("children", "param_child", "param_name", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "kv" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child per level, with its bound name
        self.param_child: _TrieNode | None = None
        self.param_name: str | None = None
        # Routes at this node, keyed by HTTP method
        self.routes_by_method: dict[str, Route] = {}


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/kv/{key}", get_value, frozenset({"GET"})))
        router.compile()
        match = router.match("GET", "/kv/greeting")
        match.path_params  # {"key": "greeting"}
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        node = self._root
        for seg in parse_path(route.path):
            if seg.is_param:
                if node.param_child is None:
                    node.param_child = _TrieNode()
                    node.param_name = seg.param_name
                elif node.param_name != seg.param_name:
                    msg = (
                        f"Route {route.path!r} names its parameter {seg.param_name!r}, "
                        f"but another route at the same position uses {node.param_name!r}."
                    )
                    raise ConfigurationError(msg)
                node = node.param_child
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        for method in route.methods:
            if method in node.routes_by_method:
                msg = f"Duplicate route: {method} {route.path!r}"
                raise ConfigurationError(msg)
            node.routes_by_method[method] = route

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes, each once."""
        seen: set[int] = set()
        result: list[Route] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            for route in node.routes_by_method.values():
                if id(route) not in seen:
                    seen.add(id(route))
                    result.append(route)
            stack.extend(node.children.values())
            if node.param_child is not None:
                stack.append(node.param_child)
        return result

    @property
    def compiled(self) -> bool:
        return self._compiled

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request path and method against compiled routes.

        Returns a ``RouteMatch`` on success.
        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})

        if result is None:
            raise NotFound(f"No route matches {method} {path!r}")

        node, params = result
        route = node.routes_by_method.get(method)
        if route is None:
            raise MethodNotAllowed(frozenset(node.routes_by_method))
        return RouteMatch(route=route, path_params=params)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[_TrieNode, dict[str, str]] | None:
        """Recursively match path parts; static children win over the parameter."""
        if index == len(parts):
            if node.routes_by_method:
                return node, params
            return None

        part = parts[index]

        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, params)
            if result is not None:
                return result

        if node.param_child is not None and node.param_name is not None:
            new_params = {**params, node.param_name: part}
            return self._match_node(node.param_child, parts, index + 1, new_params)

        return None
