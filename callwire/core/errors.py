class CallwireError(Exception):
    """Base class for every error raised by callwire."""


class FramingError(CallwireError):
    """
    The byte stream no longer carries well-formed frames.

    Framing errors are connection-level: the dispatcher cannot resynchronise
    with the peer, so the connection is closed.
    """


class ShortRead(FramingError):
    """The peer closed the stream before a complete frame was received."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Short read: expected {expected} byte(s), received {received}"
        )
        self.expected = expected
        self.received = received


class FrameTooLarge(FramingError):
    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"Frame too large: {length} byte(s), limit is {limit}")
        self.length = length
        self.limit = limit


class RequestError(CallwireError):
    """
    A failure scoped to a single request.

    The message is sent back to the client as an error record and the
    connection stays open.
    """

    @property
    def message(self) -> str:
        return str(self)


class BadRequest(RequestError):
    def __init__(self) -> None:
        super().__init__("Bad Request")


class ProcedureNotFound(RequestError):
    def __init__(self, name: str) -> None:
        super().__init__("Function Not Found")
        self.name = name


class ArityError(RequestError):
    def __init__(self, procedure: str, expected: int, received: int) -> None:
        super().__init__(
            f"incorrect number of arguments for '{procedure}': "
            f"expected {expected}, got {received}"
        )
        self.procedure = procedure
        self.expected = expected
        self.received = received


class ArgumentError(RequestError):
    def __init__(self, position: int, token: str, reason: str) -> None:
        super().__init__(f"invalid argument {position} ({token!r}): {reason}")
        self.position = position
        self.token = token


class UnsupportedType(RequestError):
    def __init__(self, position: int, procedure: str, annotation: str) -> None:
        super().__init__(
            f"unsupported argument type for '{procedure}' "
            f"at position {position}: {annotation}"
        )
        self.position = position
        self.procedure = procedure


class InvocationFailure(RequestError):
    pass


class SerializationFailure(RequestError):
    pass


class RemoteCallError(CallwireError):
    """Raised by clients when the server answered with an error record."""

    def __init__(self, procedure: str, message: str) -> None:
        super().__init__(f"{procedure}: {message}")
        self.procedure = procedure
        self.message = message
