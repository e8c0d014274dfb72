import logging

from callwire.core.models.call import CallRecord
from callwire.core.ports.observer import CallObserver


class LoggingCallObserver(CallObserver):
    """
    CallObserver writing one log line per request:

        <elapsed> | <procedure> | <args> [| <outcome>]

    Successful calls are logged at INFO, failed ones at WARNING.
    """
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("infra.calls")

    def record(self, record: CallRecord) -> None:
        elapsed = f"{record.elapsed * 1_000_000:.0f}µs"
        args = "|".join(record.args)
        line = f"{elapsed:<15} | {record.procedure:<28} | {args}"

        if record.ok:
            self._logger.info(line)
        else:
            self._logger.warning(f"{line} | {record.outcome}")

