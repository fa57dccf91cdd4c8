"""Routing — compiled route table with O(path-depth) matching.

Routes are registered during setup (directly on the app, or on a
``RouteGroup`` mounted under a prefix) and compiled into an immutable
lookup structure when the app freezes.
"""

from stash.routing.group import RouteGroup
from stash.routing.route import PathSegment, Route, RouteMatch
from stash.routing.router import Router, parse_path

__all__ = ["PathSegment", "Route", "RouteGroup", "RouteMatch", "Router", "parse_path"]
