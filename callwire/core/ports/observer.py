from typing import Protocol

from callwire.core.models.call import CallRecord


class CallObserver(Protocol):
    """
    Sink receiving one CallRecord per request handled by a dispatcher,
    successful or not.

    Implementations are called from the connection task right after the
    response has been written; they must not block the event loop.
    """

    def record(self, record: CallRecord) -> None:
        ...
