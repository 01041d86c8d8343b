"""Request and response objects and a path router."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

Handler = Callable[["Request", "Response"], None]

NOT_FOUND_REASON = "not found, what are you doing?"


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    path: str = "/"
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""

    def base_path(self) -> str:
        """The path without its query string."""
        return self.path.split("?", 1)[0]

    def query_string(self) -> str | None:
        """The text after the first ``?``, or None when there is none."""
        _, sep, query = self.path.partition("?")
        return query if sep else None

    def header(self, name: str) -> str | None:
        """The first header value named ``name``, compared without case."""
        wanted = name.lower()
        return next(
            (value for key, value in self.headers if key.lower() == wanted), None
        )


@dataclass
class Response:
    """An outgoing HTTP response, filled in by a handler."""

    status: int = 200
    reason: str = "Ok"
    headers: list[str] = field(default_factory=list)
    body: bytes = b""

    def set_status(self, code: int, reason: str) -> Response:
        self.status = code
        self.reason = reason
        return self

    def add_header(self, line: str) -> Response:
        """Add a full header line such as ``content-type: text/plain``."""
        self.headers.append(line)
        return self

    def set_body(self, body: str | bytes) -> Response:
        self.body = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        return self


@dataclass(frozen=True)
class _Route:
    pattern: re.Pattern[str]
    param_names: list[str]
    handler: Handler


def parse_path_pattern(path: str) -> tuple[re.Pattern[str], list[str]]:
    """Turn a path with ``{name}`` segments into an anchored regex.

    Each ``{name}`` segment matches one non-empty segment without ``/``.
    Returns the compiled pattern and the parameter names in order.
    """
    param_names: list[str] = []
    pieces: list[str] = []
    for part in path.split("/"):
        if part.startswith("{") and part.endswith("}"):
            param_names.append(part[1:-1])
            pieces.append("([^/]+)")
        else:
            pieces.append(part)
    return re.compile(f"^{'/'.join(pieces)}$"), param_names


class Router:
    """Dispatches requests to handlers by path.

    Exact paths are looked up first; paths with ``{name}`` segments are then
    tried in the order they were added.
    """

    def __init__(self) -> None:
        self._routes: list[_Route] = []
        self._static_routes: dict[str, Handler] = {}

    def add_route(self, path: str, handler: Handler) -> None:
        if "{" in path:
            pattern, param_names = parse_path_pattern(path)
            self._routes.append(_Route(pattern, param_names, handler))
        else:
            self._static_routes[path] = handler

    def handle_request(self, request: Request, response: Response) -> None:
        base_path = request.base_path()

        handler = self._static_routes.get(base_path)
        if handler is not None:
            handler(request, response)
            return

        for route in self._routes:
            if route.pattern.fullmatch(base_path):
                route.handler(request, response)
                return

        response.set_status(404, NOT_FOUND_REASON)