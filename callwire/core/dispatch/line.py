import time

from callwire.core.dispatch.caller import ProcedureCaller
from callwire.core.errors import BadRequest, ProcedureNotFound
from callwire.core.models.call import CallRecord
from callwire.core.models.frame import ReceiveFrame, SendFrame
from callwire.core.ports.observer import CallObserver
from callwire.core.registry.registry import Registry
from callwire.core.transport.addr import current_peer
from callwire.infra.logging_observer import LoggingCallObserver

ARGUMENT_SEPARATOR = "|"


def parse_line(line: str) -> tuple[str, list[str]]:
    """
    Split a legacy request line `<verb> <procedure> <arg>|<arg>|...` into the
    procedure name and its argument tokens. The verb is ignored.
    """
    parts = line.strip().split(" ", 2)
    if len(parts) < 2:
        raise BadRequest()

    args = parts[2] if len(parts) > 2 else ""
    tokens = args.split(ARGUMENT_SEPARATOR) if args else []
    return parts[1], tokens


class LineDispatcher:
    """
    Application serving the legacy newline-terminated text protocol.

    One request per line, one response per line. Arguments are separated by
    "|" and therefore cannot contain it, nor newlines. Unlike the binary
    protocol, the number of arguments is chosen by the client, so arity
    mismatches are reported to it. All errors are answered with an error
    record and the connection stays open.
    """

    def __init__(self, registry: Registry, observer: CallObserver | None = None) -> None:
        self._caller = ProcedureCaller(registry)
        self._observer = observer or LoggingCallObserver()

    async def __call__(self, receive: ReceiveFrame, send: SendFrame) -> None:
        peer = current_peer.get()

        while True:
            line = await receive()
            if line is None:
                break

            started = time.perf_counter()
            name, tokens = "", []
            try:
                name, tokens = parse_line(line.decode("utf-8", "replace"))
                entry = self._caller.resolve(name)
            except (BadRequest, ProcedureNotFound) as exc:
                payload, outcome = self._caller.failure(exc)
            else:
                payload, outcome = await self._caller.respond(entry, tokens)

            await send(payload)
            self._observer.record(CallRecord(
                procedure=name,
                peer=peer,
                args=tokens,
                outcome=outcome,
                elapsed=time.perf_counter() - started,
            ))
