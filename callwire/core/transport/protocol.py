import asyncio
import contextvars
import logging

from callwire.core.errors import FramingError
from callwire.core.models.config import ServerConfig
from callwire.core.models.state import ServerState
from callwire.core.transport.addr import current_peer, format_addr, get_remote_addr
from callwire.core.transport.flow import FlowControl
from callwire.core.transport.stream import Streamer


class Protocol(asyncio.Protocol):
    """
    Implements the low-level framing and connection lifecycle for a
    single TCP client. It receives raw bytes from the transport, reconstructs
    frames with the decoder of the configured wire format, and forwards their
    payloads to the Streamer instance associated with the connection.

    When a connection is established, Protocol creates a FlowControl instance,
    registers itself in the server's connection set, and starts the Streamer
    task responsible for running the application. The task runs in a copy of
    the current context in which `current_peer` names the remote client.

    A framing error (a header announcing a frame above `max_frame_size`)
    closes the connection immediately. If the peer disconnects in the middle
    of a frame, the truncated frame is reported as a short read. In both cases
    the Streamer receives a None sentinel and the application loop ends.

    Protocol does not interpret payloads or run application logic. These
    responsibilities belong to the Streamer and the Application.
    """
    def __init__(
        self,
        config: ServerConfig,
        server_state: ServerState,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._transport: asyncio.Transport = None   # type: ignore[assignment]
        self._flow: FlowControl = None  # type: ignore[assignment]
        self._streamer: Streamer = None   # type: ignore[assignment]

        self._config = config
        self._app = config.app
        self._loop = loop or asyncio.get_event_loop()
        self._connections = server_state.connections
        self._tasks = server_state.tasks
        self._decoder = config.wire_format.decoder(config.max_frame_size)
        self._closed = False
        self._client: tuple[str, int] | None = None
        self._logger = logging.getLogger("core.transport.protocol")

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self._transport = transport
        self._flow = FlowControl()
        self._connections.add(self)
        self._streamer = Streamer(
            transport=self._transport,
            flow=self._flow,
            queue=asyncio.Queue(),
            wire_format=self._config.wire_format,
        )
        self._client = get_remote_addr(transport)
        who = format_addr(self._client)

        context = contextvars.copy_context()
        context.run(current_peer.set, who)
        task = self._loop.create_task(
            self._streamer.run_app(self._app), context=context
        )
        task.add_done_callback(self._tasks.discard)
        self._tasks.add(task)

        self._logger.debug(f"{who} - Connection made")

    def connection_lost(self, exc: Exception | None) -> None:
        self._connections.discard(self)

        who = format_addr(self._client)
        self._logger.debug(f"{who} - Connection lost.")

        if not self._closed and (short := self._decoder.truncation()):
            self._logger.warning(f"{who} - {short}")

        if self._flow is not None:
            self._flow.release()
        if exc is None:
            self._transport.close()

        self._end_stream()

    def eof_received(self) -> None:
        pass

    def data_received(self, data: bytes) -> None:
        if self._closed:
            return

        try:
            payloads = self._decoder.feed(data)
        except FramingError as exc:
            who = format_addr(self._client)
            self._logger.warning(f"{who} - {exc}, closing connection")
            self._end_stream()
            self._transport.close()
            return

        for payload in payloads:
            self._streamer.queue.put_nowait(payload)

        if not self._streamer.queue.empty():
            self._streamer.pause_reading()

    def pause_writing(self) -> None:
        self._flow.pause_writing()

    def resume_writing(self) -> None:
        self._flow.resume_writing()

    def shutdown(self) -> None:
        self._transport.close()

    def _end_stream(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._streamer is not None:
            self._streamer.queue.put_nowait(None)
