"""HTTP server that accepts JSON-RPC control requests."""

from __future__ import annotations

import json
import logging
import socket
import threading
from dataclasses import dataclass
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from daqstream.control import JSONRPC_ID, JSONRPC_METHOD, JSONRPC_PARAMS
from daqstream.log import LOGGER_NAME

SERVER_NAME = "daqstream"
_logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class ControlResponse:
    """Status, content type and body of the answer to a control request."""

    status: int
    content_type: str
    body: str


def _bad_request(why: str) -> ControlResponse:
    _logger.error("Bad request: %s", why)
    return ControlResponse(HTTPStatus.BAD_REQUEST, "text/html", why)


def handle_request(method: str, body: str | bytes) -> ControlResponse:
    """Check a control request and produce the response for it."""
    if method.upper() != "POST":
        return _bad_request("Unknown HTTP-method")

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    try:
        request = json.loads(body)
    except ValueError:
        return _bad_request("json rpc request is not valid json")
    if not isinstance(request, dict):
        return _bad_request("json rpc request must be an object")

    if request.get(JSONRPC_ID) is None:
        return _bad_request("json rpc request without id")
    method_name = request.get(JSONRPC_METHOD)
    if method_name is None:
        return _bad_request("json rpc request without method")
    if not isinstance(method_name, str):
        return _bad_request("json rpc request method must be a string")

    stream_id, delimiter, command = method_name.partition(".")
    if not delimiter:
        return _bad_request(
            f"json rpc request with invalid method '{method_name}'. "
            "Expecting <stream id>.<command>"
        )

    params = request.get(JSONRPC_PARAMS)
    if params is None:
        return _bad_request("json rpc request without parameters")

    _logger.info("Got request '%s' from '%s'", command, stream_id)
    if not isinstance(params, list) or not all(isinstance(p, str) for p in params):
        return _bad_request("Expecting an array of signal ids as parameters")

    return ControlResponse(HTTPStatus.OK, "application/json", json.dumps(None))


class _ControlRequestHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    server_version = SERVER_NAME
    timeout = 30

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        response = handle_request(self.command, body)
        payload = response.body.encode("utf-8")
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    do_POST = _handle
    do_GET = _handle
    do_PUT = _handle
    do_DELETE = _handle
    do_PATCH = _handle

    def log_message(self, format: str, *args) -> None:
        _logger.debug(format, *args)


class _ThreadingHTTPServer6(ThreadingHTTPServer):
    address_family = socket.AF_INET6


class ControlServer:
    """Serves control requests in a background thread."""

    def __init__(self, host: str = "::", port: int = 0) -> None:
        self.host = host
        self.port = port
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def server_address(self) -> tuple[str, int]:
        """Address and port the server is bound to."""
        if self._server is None:
            raise RuntimeError("control server is not running")
        address = self._server.server_address
        return address[0], address[1]

    def start(self) -> None:
        """Bind, listen and start accepting connections."""
        if self._server is not None:
            raise RuntimeError("control server is already running")
        server_class = _ThreadingHTTPServer6 if ":" in self.host else ThreadingHTTPServer
        server = server_class((self.host, self.port), _ControlRequestHandler)
        server.daemon_threads = True
        self._server = server
        self._thread = threading.Thread(target=server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop accepting connections and close the listening socket."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None

    def __enter__(self) -> ControlServer:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()