import asyncio
from contextvars import ContextVar

current_peer: ContextVar[str] = ContextVar("current_peer", default="")
"""
"host:port" of the client served by the current connection task.
Set by the Protocol before the application task is created, so every
task spawned for a connection sees its own peer.
"""


def get_remote_addr(transport: asyncio.BaseTransport) -> tuple[str, int] | None:
    info = transport.get_extra_info("peername")
    if isinstance(info, (list, tuple)) and len(info) >= 2:
        return str(info[0]), int(info[1])
    return None


def format_addr(addr: tuple[str, int] | None) -> str:
    return "%s:%d" % addr if addr else ""
