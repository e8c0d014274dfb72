import socket
import ssl
from typing import Any

from callwire.core.connections.client import encode_request, parse_error_record
from callwire.core.errors import FramingError, RemoteCallError
from callwire.core.transport.framing import recv_frame


class CallwireClient:
    """
    Synchronous TCP client for callwire.
    Every value is sent as a length-prefixed frame:

        [8-byte big-endian length][payload]

    A call is the procedure name frame followed by one frame per argument;
    the server answers with exactly one frame.

    This client is minimal and blocking. It is intended for CLI usage,
    debugging, and simple scripts.
    """
    def __init__(
        self,
        host: str,
        port: int,
        ssl_ctx: ssl.SSLContext | None = None,
        timeout: float | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._ssl_ctx = ssl_ctx
        self._timeout = timeout
        self._sock: socket.socket | None = None

    def __enter__(self) -> "CallwireClient":
        self.connect()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def connect(self) -> None:
        if self._sock is not None:
            return

        raw_sock = socket.create_connection((self._host, self._port), timeout=self._timeout)
        if self._ssl_ctx is not None:
            self._sock = self._ssl_ctx.wrap_socket(raw_sock, server_hostname=self._host)
        else:
            self._sock = raw_sock

    def close(self) -> None:
        if self._sock:
            try:
                self._sock.close()
            finally:
                self._sock = None

    def call(self, procedure: str, *args: Any) -> str:
        """
        Call `procedure` and return the response as text. Error records are
        returned as their JSON text, use `call_checked` to get an exception.
        """
        if not self._sock:
            self.connect()
        assert self._sock is not None

        self._sock.sendall(encode_request(procedure, args))
        try:
            payload = recv_frame(self._sock)
        except FramingError:
            self.close()
            raise

        return payload.decode("utf-8", "replace")

    def call_checked(self, procedure: str, *args: Any) -> str:
        text = self.call(procedure, *args)
        if (message := parse_error_record(text)) is not None:
            raise RemoteCallError(procedure, message)
        return text
