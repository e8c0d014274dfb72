import asyncio
import json
import logging
import ssl
from typing import Any

from callwire.core.errors import FramingError, RemoteCallError
from callwire.core.transport.framing import encode_frame, read_frame


def to_token(arg: Any) -> bytes:
    if isinstance(arg, (bytes, bytearray)):
        return bytes(arg)
    if arg is None:
        return b"null"
    return str(arg).encode("utf-8")


def encode_request(procedure: str, args: tuple[Any, ...]) -> bytes:
    frames = [encode_frame(procedure.encode("utf-8"))]
    frames.extend(encode_frame(to_token(arg)) for arg in args)
    return b"".join(frames)


def parse_error_record(text: str) -> str | None:
    """
    Return the message of an error record `{"error": "..."}`, or None when
    `text` is a regular result.
    """
    if not text.startswith('{"error"'):
        return None
    try:
        data = json.loads(text)
    except ValueError:
        return None
    if isinstance(data, dict) and list(data) == ["error"]:
        return str(data["error"])
    return None


class AsyncCallwireClient:
    """
    asyncio client for the binary call protocol.

    A call writes the procedure name frame followed by one frame per
    argument, then waits for the single response frame and returns it as
    text. Structured results are returned as their JSON text, error records
    too unless `raise_for_error` is set, in which case RemoteCallError is
    raised.

    Requests on one connection are strictly sequential; concurrent callers
    sharing a client are serialized by an internal lock.
    """
    def __init__(
        self,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext | None = None,
        max_frame_size: int | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._ssl_context = ssl_context
        self._max_frame_size = max_frame_size

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._lock = asyncio.Lock()
        self._logger = logging.getLogger("core.connections.client")

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def __aenter__(self) -> "AsyncCallwireClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.connected:
            return

        self._reader, self._writer = await asyncio.open_connection(
            host=self._host,
            port=self._port,
            ssl=self._ssl_context,
            server_hostname=self._host if self._ssl_context else None,
        )
        self._logger.debug(f"Connected to {self._host}:{self._port}")

    async def close(self) -> None:
        if self._writer is None:
            return

        writer, self._writer, self._reader = self._writer, None, None
        writer.close()
        try:
            await writer.wait_closed()
        except ConnectionError:
            pass

    async def call(self, procedure: str, *args: Any, raise_for_error: bool = False) -> str:
        async with self._lock:
            if not self.connected:
                await self.connect()
            assert self._reader is not None and self._writer is not None

            self._writer.write(encode_request(procedure, args))
            await self._writer.drain()

            try:
                payload = await read_frame(self._reader, self._max_frame_size)
            except FramingError:
                await self.close()
                raise

        text = payload.decode("utf-8", "replace")
        if raise_for_error and (message := parse_error_record(text)) is not None:
            raise RemoteCallError(procedure, message)
        return text
