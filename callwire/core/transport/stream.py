import asyncio
import logging

from callwire.core.transport.application import Application
from callwire.core.transport.flow import FlowControl
from callwire.core.transport.framing import WireFormat


class Streamer:
    """
    Manages the bidirectional flow of payloads for a single TCP connection.

    It receives decoded payloads from the Protocol through an internal queue
    and exposes them to the Application via the asynchronous `receive()` method.
    A None item in the queue marks the end of the connection. When the
    Application sends a response, the Streamer frames the payload with the
    connection's wire format and writes it to the transport.

    Streamer enforces backpressure using FlowControl. If the transport signals
    that writing is paused, `send()` waits until writing becomes possible again
    before transmitting data. In the other direction, reading from the
    transport is paused while decoded payloads wait in the queue, and resumed
    only when the Application asks for a payload the queue does not hold: the
    next request is not read before the current response has been written.
    Writing to a transport that is already closing raises ConnectionResetError
    so the Application stops its request loop.

    The `run_app()` method executes the Application for the lifetime of the
    connection. When the Application returns or raises an exception, the
    Streamer closes the transport.
    """
    def __init__(
        self,
        transport: asyncio.Transport,
        flow: FlowControl,
        queue: asyncio.Queue[bytes | None],
        wire_format: WireFormat = WireFormat.binary,
    ) -> None:
        self.queue = queue
        self.read_paused = False
        self._transport = transport
        self._flow = flow
        self._wire_format = wire_format
        self._logger = logging.getLogger("core.transport.stream")

    async def send(self, payload: bytes) -> None:
        if self._flow.write_paused:
            await self._flow.drain()

        if self._transport.is_closing():
            raise ConnectionResetError("Transport is closed")

        self._transport.write(self._wire_format.encode(payload))

    def pause_reading(self) -> None:
        if self.read_paused or self._transport.is_closing():
            return
        self.read_paused = True
        self._transport.pause_reading()

    def resume_reading(self) -> None:
        if not self.read_paused:
            return
        self.read_paused = False
        if not self._transport.is_closing():
            self._transport.resume_reading()

    async def receive(self) -> bytes | None:
        if self.queue.empty():
            self.resume_reading()
        return await self.queue.get()

    async def run_app(self, app: Application) -> None:
        try:
            await app(self.receive, self.send)
        except ConnectionError as exc:
            self._logger.debug(f"Connection closed while sending: {exc}")
        except asyncio.CancelledError:
            self._logger.debug("Application cancelled")
            raise
        except Exception as exc:
            self._logger.error("Exception in Application", exc_info=exc)
        finally:
            self._transport.close()
