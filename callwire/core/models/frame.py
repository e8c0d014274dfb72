from typing import Awaitable, Callable


ReceiveFrame = Callable[[], Awaitable[bytes | None]]
"""
Coroutine provided to the application for receiving the next frame payload.
It suspends until a frame is available and returns None once the connection
is closed or the byte stream can no longer be decoded.
"""


SendFrame = Callable[[bytes], Awaitable[None]]
"""
Coroutine provided to the application for sending one payload to the client.
The transport takes care of framing it.
"""
