"""
Wire framing for callwire.

Every value crossing the wire is one frame:

    [8-byte big-endian unsigned length][payload]

The length is explicit, so payloads need no escaping and may be empty.
The reference protocol trusts the peer: no maximum length is enforced unless
a `max_frame_size` is supplied.

The legacy text protocol is also available. It terminates every message with
a newline, which means it can carry neither newlines nor its own argument
delimiter. It exists for older deployments only.
"""
import asyncio
import socket
import struct
from enum import StrEnum
from typing import Protocol

from callwire.core.errors import FrameTooLarge, ShortRead

# "!Q" = uint64 big-endian (network order)
HEADER = struct.Struct("!Q")
HEADER_SIZE = HEADER.size

LINE_TERMINATOR = b"\n"


def encode_frame(payload: bytes) -> bytes:
    return HEADER.pack(len(payload)) + payload


def _check_length(length: int, max_frame_size: int | None) -> None:
    if max_frame_size is not None and length > max_frame_size:
        raise FrameTooLarge(length, max_frame_size)


class Decoder(Protocol):
    """
    Incremental decoder turning a raw byte stream into message payloads.
    """

    def feed(self, data: bytes) -> list[bytes]:
        """Consume `data` and return every payload it completed."""

    @property
    def pending(self) -> int:
        """Number of buffered bytes belonging to an incomplete message."""

    def truncation(self) -> ShortRead | None:
        """Describe the incomplete message left in the buffer, if any."""


class FrameDecoder:
    """
    Reassembles length-prefixed frames from arbitrarily fragmented chunks.
    """

    def __init__(self, max_frame_size: int | None = None) -> None:
        self._max_frame_size = max_frame_size
        self._buffer = bytearray()
        self._expected_length: int | None = None

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def truncation(self) -> ShortRead | None:
        if self._expected_length is not None:
            return ShortRead(self._expected_length, len(self._buffer))
        if self._buffer:
            return ShortRead(HEADER_SIZE, len(self._buffer))
        return None

    def feed(self, data: bytes) -> list[bytes]:
        self._buffer.extend(data)
        frames: list[bytes] = []

        while True:
            if self._expected_length is None:
                if len(self._buffer) < HEADER_SIZE:
                    return frames

                length = HEADER.unpack(self._buffer[:HEADER_SIZE])[0]
                _check_length(length, self._max_frame_size)
                self._expected_length = length
                del self._buffer[:HEADER_SIZE]

            if len(self._buffer) < self._expected_length:
                return frames

            frames.append(bytes(self._buffer[:self._expected_length]))
            del self._buffer[:self._expected_length]
            self._expected_length = None


class LineDecoder:
    """
    Splits the legacy text protocol into lines, without their terminator.
    A trailing carriage return is dropped so telnet-style clients work.
    """

    def __init__(self, max_frame_size: int | None = None) -> None:
        self._max_frame_size = max_frame_size
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def truncation(self) -> ShortRead | None:
        if self._buffer:
            return ShortRead(len(self._buffer) + 1, len(self._buffer))
        return None

    def feed(self, data: bytes) -> list[bytes]:
        self._buffer.extend(data)
        lines: list[bytes] = []

        while (index := self._buffer.find(LINE_TERMINATOR)) >= 0:
            line = bytes(self._buffer[:index])
            del self._buffer[:index + 1]
            _check_length(len(line), self._max_frame_size)
            lines.append(line.removesuffix(b"\r"))

        _check_length(len(self._buffer), self._max_frame_size)
        return lines


def encode_line(payload: bytes) -> bytes:
    return payload + LINE_TERMINATOR


class WireFormat(StrEnum):
    binary = "binary"
    line = "line"

    def decoder(self, max_frame_size: int | None = None) -> Decoder:
        if self is WireFormat.line:
            return LineDecoder(max_frame_size)
        return FrameDecoder(max_frame_size)

    def encode(self, payload: bytes) -> bytes:
        if self is WireFormat.line:
            return encode_line(payload)
        return encode_frame(payload)


async def read_frame(
    reader: asyncio.StreamReader,
    max_frame_size: int | None = None,
) -> bytes:
    """
    Read exactly one frame from an asyncio stream.

    Raises ShortRead if the peer closes before the header or the payload
    has been fully received.
    """
    try:
        header = await reader.readexactly(HEADER_SIZE)
    except asyncio.IncompleteReadError as ex:
        raise ShortRead(HEADER_SIZE, len(ex.partial)) from ex

    length = HEADER.unpack(header)[0]
    _check_length(length, max_frame_size)

    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as ex:
        raise ShortRead(length, len(ex.partial)) from ex


def recv_exact(sock: socket.socket, n: int) -> bytes:
    """Blocking read of exactly n bytes."""
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            raise ShortRead(n, len(buf))
        buf.extend(chunk)
    return bytes(buf)


def recv_frame(sock: socket.socket, max_frame_size: int | None = None) -> bytes:
    header = recv_exact(sock, HEADER_SIZE)
    length = HEADER.unpack(header)[0]
    _check_length(length, max_frame_size)
    return recv_exact(sock, length)
