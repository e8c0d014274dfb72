import asyncio


class FlowControl:
    """
    Tracks whether the transport accepts more outgoing bytes.

    asyncio calls `pause_writing()` / `resume_writing()` on the Protocol when
    the transport's write buffer crosses its high/low water marks. The
    Streamer awaits `drain()` before writing a response, so a slow reader
    pauses the dispatcher of its own connection and nothing else.

    `release()` is used on connection loss: it unblocks any pending drain for
    good, the following write then fails against the closed transport.
    """

    def __init__(self) -> None:
        self._writable = asyncio.Event()
        self._writable.set()
        self.write_paused = False
        self.released = False

    async def drain(self) -> None:
        """Block until writing is allowed again."""
        await self._writable.wait()

    def pause_writing(self) -> None:
        if self.released:
            return
        self.write_paused = True
        self._writable.clear()

    def resume_writing(self) -> None:
        if self.write_paused:
            self.write_paused = False
            self._writable.set()

    def release(self) -> None:
        self.released = True
        self.resume_writing()
