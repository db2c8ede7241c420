# SPDX-License-Identifier: MIT
"""Request routing for the feed.

A ``Router`` owns every path below one base path. Dispatching a request runs
through these steps:

1. A path outside the base path is not ours: 404.
2. The remainder is matched against each route pattern in order; the first
   structural match binds the route and its path variables.
3. No structural match: 405 if the path lies in a subtree that refuses the
   method, otherwise 404.
4. A structural match whose route does not accept the method: 405.
5. Otherwise the route's resource handles the request and its response is
   returned as is.

Patterns are checked pairwise when the router is built, so no path can match
two routes and declaration order never decides between them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from fastapi.responses import Response

from .headers import Headers
from .middleware.errors import (
    APIError,
    MethodNotAllowedError,
    NotFoundError,
    error_response,
    internal_error_response,
)
from .resources import Body, Resource

logger = logging.getLogger(__name__)

# Methods with a matching resource capability
SUPPORTED_METHODS = ("GET", "PUT")


def normalize_base(base: str) -> str:
    """Normalize a base path to '' (root) or '/segment[/segment...]'."""
    stripped = base.strip("/")
    return f"/{stripped}" if stripped else ""


def _is_variable(segment: str) -> bool:
    return len(segment) > 2 and segment.startswith("{") and segment.endswith("}")


@dataclass(frozen=True)
class RoutePattern:
    """Path template made of literal and ``{variable}`` segments.

    A variable matches exactly one non-empty path segment.

    Examples:
        >>> RoutePattern.parse("content/{id}/index.json").match(["content", "a", "index.json"])
        {'id': 'a'}
    """

    template: str
    segments: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        segments = tuple(self.template.strip("/").split("/"))
        if any(not segment for segment in segments):
            raise ValueError(f"Empty segment in route pattern '{self.template}'")
        names = [segment[1:-1] for segment in segments if _is_variable(segment)]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate variable in route pattern '{self.template}'")
        object.__setattr__(self, "segments", segments)

    @classmethod
    def parse(cls, template: str) -> RoutePattern:
        """Create a pattern from a '/'-separated template."""
        return cls(template)

    def match(self, segments: Sequence[str]) -> dict[str, str] | None:
        """Match path segments, returning captured variables or None."""
        if len(segments) != len(self.segments):
            return None
        variables: dict[str, str] = {}
        for expected, actual in zip(self.segments, segments):
            if _is_variable(expected):
                if not actual:
                    return None
                variables[expected[1:-1]] = actual
            elif expected != actual:
                return None
        return variables

    def overlaps(self, other: RoutePattern) -> bool:
        """Return True if some path would match both patterns."""
        if len(self.segments) != len(other.segments):
            return False
        return all(
            _is_variable(mine) or _is_variable(theirs) or mine == theirs
            for mine, theirs in zip(self.segments, other.segments)
        )

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass(frozen=True)
class Subtree:
    """Every path below a literal prefix, restricted to a set of methods.

    A request under the prefix with any other method is answered 405 even
    when no route matches its shape.
    """

    prefix: tuple[str, ...]
    methods: tuple[str, ...]

    @classmethod
    def of(cls, prefix: str, methods: Sequence[str]) -> Subtree:
        """Create a subtree from a '/'-separated literal prefix."""
        segments = tuple(prefix.strip("/").split("/"))
        if any(not s or _is_variable(s) for s in segments):
            raise ValueError(f"Subtree prefix must be literal segments: '{prefix}'")
        return cls(segments, tuple(m.upper() for m in methods))

    def contains(self, segments: Sequence[str]) -> bool:
        """Return True if segments lie strictly below the prefix."""
        if len(segments) <= len(self.prefix):
            return False
        return tuple(segments[: len(self.prefix)]) == self.prefix

    def covers(self, pattern: RoutePattern) -> bool:
        """Return True if some path matching pattern lies below the prefix."""
        if len(pattern.segments) <= len(self.prefix):
            return False
        return all(
            _is_variable(mine) or mine == theirs
            for mine, theirs in zip(pattern.segments, self.prefix)
        )

    def __str__(self) -> str:
        return "/".join(self.prefix)


ResourceFactory = Callable[[Mapping[str, str]], Resource]


@dataclass(frozen=True)
class Route:
    """One route table entry: accepted methods, path pattern, resource factory."""

    methods: tuple[str, ...]
    pattern: RoutePattern
    factory: ResourceFactory

    def __post_init__(self) -> None:
        unsupported = [m for m in self.methods if m not in SUPPORTED_METHODS]
        if not self.methods or unsupported:
            raise ValueError(f"Route '{self.pattern}' has unsupported methods: {self.methods}")

    @classmethod
    def of(cls, methods: Sequence[str], template: str, factory: ResourceFactory) -> Route:
        """Create a route from a method list and a template string."""
        return cls(tuple(m.upper() for m in methods), RoutePattern.parse(template), factory)


@dataclass(frozen=True)
class RouteMatch:
    """A route selected for a request, with its captured path variables."""

    route: Route
    variables: dict[str, str]

    def resource(self) -> Resource:
        """Build the resource that handles the matched request."""
        return self.route.factory(self.variables)


class Router:
    """Dispatches requests under one base path to route resources."""

    def __init__(self, base: str, routes: Sequence[Route], subtrees: Sequence[Subtree] = ()):
        self.base = normalize_base(base)
        self.routes = tuple(routes)
        self.subtrees = tuple(subtrees)
        for i, route in enumerate(self.routes):
            for other in self.routes[i + 1 :]:
                if route.pattern.overlaps(other.pattern):
                    raise ValueError(
                        f"Route patterns '{route.pattern}' and '{other.pattern}' overlap"
                    )
        for subtree in self.subtrees:
            for route in self.routes:
                extra = set(route.methods) - set(subtree.methods)
                if subtree.covers(route.pattern) and extra:
                    raise ValueError(
                        f"Route '{route.pattern}' accepts {sorted(extra)} "
                        f"inside subtree '{subtree}'"
                    )

    def owns(self, path: str) -> bool:
        """Return True if path lies under the base path."""
        return path == self.base or path.startswith(self.base + "/")

    def match(self, method: str, path: str) -> RouteMatch:
        """Select the route for a request.

        Raises:
            NotFoundError: If the path is outside the base path or matches no route
            MethodNotAllowedError: If the matched route or the enclosing
                subtree does not accept the method
        """
        if not self.owns(path):
            raise NotFoundError(path)
        remainder = path[len(self.base) :].lstrip("/")
        segments = remainder.split("/")
        for route in self.routes:
            variables = route.pattern.match(segments)
            if variables is None:
                continue
            if method.upper() not in route.methods:
                raise MethodNotAllowedError(method, route.methods, path)
            return RouteMatch(route, variables)
        for subtree in self.subtrees:
            if subtree.contains(segments) and method.upper() not in subtree.methods:
                raise MethodNotAllowedError(method, subtree.methods, path)
        raise NotFoundError(path)

    async def dispatch(self, method: str, path: str, headers: Headers, body: Body) -> Response:
        """Answer one request. Never raises; every failure becomes a response."""
        try:
            resource = self.match(method, path).resource()
            if method.upper() == "GET":
                return await resource.get(headers)
            return await resource.put(headers, body)
        except APIError as e:
            logger.debug("%s %s -> %d: %s", method, path, e.status_code, e.message)
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error for %s %s", method, path)
            return internal_error_response()
