"""The HTTP server: route table, request handler and entry point."""

from __future__ import annotations

import argparse
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

from . import controllers
from .plugins import CorePlugin, PluginError
from .routing import Request, Response, Router
from .utility import ConfigError, load_config

DEFAULT_CONFIG_PATH = "../../config.toml"


def build_router() -> Router:
    """A router with every API endpoint registered."""
    router = Router()
    router.add_route("/api/test/hello", controllers.hello)
    router.add_route("/api/check/status/config", controllers.status_config)
    router.add_route("/api/param", controllers.param_message)
    router.add_route("/api/path/{path1}/{path2}", controllers.handle_path)
    router.add_route("/api/submit/item", controllers.submit_item)
    return router


class BackendRequestHandler(BaseHTTPRequestHandler):
    """Passes every request, whatever its method, to the router."""

    router: Router = build_router()

    def _dispatch(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        request = Request(
            method=self.command,
            path=self.path,
            headers=list(self.headers.items()),
            body=body,
        )
        response = Response()
        try:
            self.router.handle_request(request, response)
        except Exception as exc:  # a failing handler must not kill the server
            print(f"ERROR: handler failed \"{exc}\"", file=sys.stderr)
            response = Response().set_status(500, "Internal Server Error")

        self.send_response(response.status, response.reason)
        for line in response.headers:
            name, _, value = line.partition(":")
            self.send_header(name.strip(), value.strip())
        self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(response.body)

    do_GET = do_HEAD = do_POST = do_PUT = do_DELETE = _dispatch
    do_CONNECT = do_OPTIONS = do_TRACE = do_PATCH = _dispatch

    def log_message(self, format: str, *args: Any) -> None:
        pass


def listener_address(config: dict[str, Any]) -> tuple[str, int]:
    """The address and port of the first configured listener.

    Raises ValueError when ``config.listeners`` is not a non-empty array of
    tables with a string ``address`` and an integer ``port``.
    """
    section = config.get("config")
    listeners = section.get("listeners") if isinstance(section, dict) else None
    if not isinstance(listeners, list) or not listeners:
        raise ValueError(
            "listeners should be an array object that has address & port key"
        )
    first = listeners[0]
    if not isinstance(first, dict):
        raise ValueError("listener must be a table")
    address = first.get("address")
    port = first.get("port")
    if not isinstance(address, str):
        raise ValueError("listener address must be a string")
    if isinstance(port, bool) or not isinstance(port, int):
        raise ValueError("listener port must be an integer")
    return address, port


def serve(host: str, port: int) -> None:
    """Serve the API on ``host:port`` until interrupted."""
    with ThreadingHTTPServer((host, port), BackendRequestHandler) as server:
        server.serve_forever()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the backend HTTP server.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="TOML configuration file")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        CorePlugin.initialize(config)
    except PluginError as exc:
        print(f"ERROR: failed to initialize CorePlugin: {exc}", file=sys.stderr)
        return 1

    try:
        host, port = listener_address(config)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"INFO: starting backend {host}:{port}")
    try:
        serve(host, port)
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())