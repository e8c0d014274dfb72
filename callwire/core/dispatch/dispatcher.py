import logging
import time

from callwire.core.dispatch.caller import ProcedureCaller
from callwire.core.errors import ProcedureNotFound
from callwire.core.models.call import CallRecord
from callwire.core.models.frame import ReceiveFrame, SendFrame
from callwire.core.ports.observer import CallObserver
from callwire.core.registry.registry import Registry
from callwire.core.transport.addr import current_peer
from callwire.infra.logging_observer import LoggingCallObserver


def token_text(token: bytes) -> str:
    return token.decode("utf-8", "replace")


class Dispatcher:
    """
    Application serving the binary call protocol on one connection.

    Each request is a frame carrying the procedure name followed by exactly
    as many frames as the procedure declares parameters. The loop is:

        await name -> lookup -> await arguments -> coerce -> invoke
        -> serialize -> send -> await name ...

    - An unknown name is answered with an error record right away, no
      argument frames are read for it.
    - Coercion, invocation and serialization failures are answered with an
      error record; the procedure is never invoked when coercion fails.
    - The next request is read only once the response has been written.

    The loop ends when `receive()` returns None, i.e. when the peer
    disconnected or the stream could not be framed, including in the middle
    of a request. Every answered request produces one CallRecord.
    """

    def __init__(self, registry: Registry, observer: CallObserver | None = None) -> None:
        self._caller = ProcedureCaller(registry)
        self._observer = observer or LoggingCallObserver()
        self._logger = logging.getLogger("core.dispatch.dispatcher")

    async def __call__(self, receive: ReceiveFrame, send: SendFrame) -> None:
        peer = current_peer.get()

        while True:
            frame = await receive()
            if frame is None:
                break

            name = token_text(frame)
            try:
                entry = self._caller.resolve(name)
            except ProcedureNotFound as exc:
                started = time.perf_counter()
                payload, outcome = self._caller.failure(exc)
                await send(payload)
                self._record(name, peer, [], outcome, started)
                continue

            tokens: list[bytes] = []
            for _ in range(entry.descriptor.arity):
                token = await receive()
                if token is None:
                    self._logger.debug(
                        f"{peer} - Connection closed while reading arguments of '{name}'"
                    )
                    return
                tokens.append(token)

            started = time.perf_counter()
            payload, outcome = await self._caller.respond(entry, tokens)
            await send(payload)
            self._record(name, peer, [token_text(t) for t in tokens], outcome, started)

    def _record(
        self,
        name: str,
        peer: str,
        args: list[str],
        outcome: str,
        started: float,
    ) -> None:
        self._observer.record(CallRecord(
            procedure=name,
            peer=peer,
            args=args,
            outcome=outcome,
            elapsed=time.perf_counter() - started,
        ))
