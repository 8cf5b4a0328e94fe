"""Client for the HTTP control port used to subscribe and unsubscribe signals."""

from __future__ import annotations

import http.client
import itertools
import json
import logging
import socket
import threading
from typing import Any, Iterable

from daqstream.defines import META_METHOD_SUBSCRIBE, META_METHOD_UNSUBSCRIBE
from daqstream.log import LogCallback

JSONRPC_VERSION_KEY = "jsonrpc"
JSONRPC_METHOD = "method"
JSONRPC_PARAMS = "params"
JSONRPC_ID = "id"

CONTENT_TYPE_JSON = "application/json; charset=utf-8"
USER_AGENT = "daqstream"
TIMEOUT_SECONDS = 30.0

_logger = logging.getLogger(__name__)


class ControlError(RuntimeError):
    """Raised when a control request cannot be set up or carried out."""


def _default_log(level: int, message: str) -> None:
    _logger.log(level, message)


class HttpPost:
    """Sends one HTTP POST request and returns the body of the response."""

    def __init__(
        self,
        host: str,
        port: str | int,
        target: str,
        protocol_version: int,
        log_cb: LogCallback | None = None,
    ) -> None:
        self.host = host or "localhost"
        self.port = str(port) if port is not None else ""
        if not self.port:
            raise ControlError("port not provided")
        if not target:
            raise ControlError("target not provided")
        self.target = target
        # 10 for HTTP/1.0, 11 for HTTP/1.1
        self.protocol_version = protocol_version
        self._log = log_cb or _default_log

    @property
    def version_string(self) -> str:
        major, minor = divmod(self.protocol_version, 10)
        return f"HTTP/{major}.{minor}"

    def _fail(self, what: str, exc: Exception) -> ControlError:
        self._log(logging.ERROR, f"{what}: {exc}")
        return ControlError(f"{what}: {exc}")

    def _encode(self, request: str) -> bytes:
        body = request.encode("utf-8")
        head = (
            f"POST {self.target} {self.version_string}\r\n"
            f"Host: {self.host}\r\n"
            f"Content-Type: {CONTENT_TYPE_JSON}\r\n"
            f"User-Agent: {USER_AGENT}\r\n"
            f"Content-Length: {len(body)}\r\n"
            "\r\n"
        )
        return head.encode("latin-1") + body

    def _connect(self) -> socket.socket:
        try:
            addresses = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_STREAM)
        except OSError as exc:
            raise self._fail("resolve", exc) from exc

        last_error: OSError | None = None
        for family, sock_type, proto, _, address in addresses:
            sock = socket.socket(family, sock_type, proto)
            sock.settimeout(TIMEOUT_SECONDS)
            try:
                sock.connect(address)
            except OSError as exc:
                sock.close()
                last_error = exc
                continue
            return sock
        error = last_error or OSError("no address to connect to")
        raise self._fail("connect", error) from error

    def run(self, request: str) -> str:
        """Post the request text and return the response body."""
        self._log(
            logging.DEBUG, f"run target: {self.target} request: {request}"
        )
        sock = self._connect()
        try:
            try:
                sock.sendall(self._encode(request))
            except OSError as exc:
                raise self._fail("write", exc) from exc

            try:
                response = http.client.HTTPResponse(sock, method="POST")
                response.begin()
                body = response.read()
            except (OSError, http.client.HTTPException) as exc:
                raise self._fail("read", exc) from exc

            text = body.decode("utf-8", errors="replace")
            self._log(logging.DEBUG, text)
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as exc:
                if exc.errno not in (None, 107, 57, 10057):  # not connected
                    self._log(logging.ERROR, f"shutdown: {exc}")
            return text
        finally:
            sock.close()


class Controller:
    """Sends subscribe and unsubscribe commands to the streaming control port."""

    _ids = itertools.count(1)
    _ids_lock = threading.Lock()

    def __init__(
        self,
        stream_id: str,
        address: str,
        port: str | int,
        target: str,
        http_version: int,
        log_cb: LogCallback | None = None,
    ) -> None:
        if not stream_id:
            raise ControlError("No stream id provided")
        self.stream_id = stream_id
        self.address = address
        self.port = port
        self.target = target
        self.http_version = http_version
        self._log = log_cb or _default_log

    @classmethod
    def _next_id(cls) -> int:
        with cls._ids_lock:
            return next(cls._ids)

    def create_request(self, signal_ids: Iterable[str], method: str) -> dict[str, Any]:
        """Build the JSON-RPC request for a command on the given signals."""
        request: dict[str, Any] = {
            JSONRPC_VERSION_KEY: "2.0",
            JSONRPC_METHOD: f"{self.stream_id}.{method}",
        }
        ids = list(signal_ids)
        if ids:
            request[JSONRPC_PARAMS] = ids
        request[JSONRPC_ID] = self._next_id()
        return request

    def _execute(self, request: dict[str, Any]) -> str:
        text = json.dumps(request, separators=(",", ":"))
        post = HttpPost(self.address, self.port, self.target, self.http_version, self._log)
        return post.run(text)

    def subscribe(self, signal_ids: Iterable[str]) -> str | None:
        """Subscribe several signals with one request; nothing is sent for no signals."""
        ids = list(signal_ids)
        if not ids:
            return None
        self._log(logging.INFO, ": Subscribing: =====================")
        for signal_id in ids:
            self._log(logging.INFO, signal_id)
        return self._execute(self.create_request(ids, META_METHOD_SUBSCRIBE))

    def unsubscribe(self, signal_ids: Iterable[str]) -> str | None:
        """Unsubscribe several signals with one request; nothing is sent for no signals."""
        ids = list(signal_ids)
        if not ids:
            return None
        self._log(logging.INFO, f"{len(ids)} signal(s): ==============")
        for signal_id in ids:
            self._log(logging.INFO, signal_id)
        self._log(logging.INFO, "====================================================")
        return self._execute(self.create_request(ids, META_METHOD_UNSUBSCRIBE))