from typing import Protocol

from callwire.core.models.frame import ReceiveFrame, SendFrame


class Application(Protocol):
    """
    This interface defines the per-connection handler executed by the Streamer.

    An Application is an asynchronous callable that receives two functions:
    `receive`, which waits for and returns the next incoming frame payload, and
    `send`, which transmits a payload to the remote peer. The Application
    implements the request logic for a single TCP connection by repeatedly
    calling `receive()` to consume frames and `send(payload)` to produce
    responses.

    The Application runs until it returns or raises an exception. When it exits,
    the underlying connection is closed by the Streamer.

    The Application does not handle framing or transport-level concerns.
    These responsibilities belong to the Protocol and the Streamer.
    """
    async def __call__(self, receive: ReceiveFrame, send: SendFrame) -> None:
        ...
