from dataclasses import dataclass, field


@dataclass
class CallRecord:
    """
    Latency and outcome of a single request, emitted once per request
    whatever its result.
    """
    procedure: str

    peer: str

    args: list[str] = field(default_factory=list)

    outcome: str = "ok"
    """
    "ok" on success, otherwise the name of the request-level error class.
    """

    elapsed: float = 0.0
    """
    Seconds spent between the end of the request read and the response write.
    """

    @property
    def ok(self) -> bool:
        return self.outcome == "ok"
