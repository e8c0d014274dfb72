import ssl
from dataclasses import dataclass

from callwire.core.transport.application import Application
from callwire.core.transport.framing import WireFormat


@dataclass
class ServerConfig:
    """
    Static configuration for a callwire CallServer.

    This structure defines all parameters required to start a server:
    networking, optional TLS, framing and graceful shutdown behavior.
    """
    app: Application
    """
    The per-connection application coroutine with the signature:
        async def app(receive, send)
    It receives frame payloads and sends response payloads.
    """

    host: str
    """
    IP address or hostname on which the server listens.
    """

    port: int
    """
    TCP port to bind. If set to 0, the OS selects an available port.
    """

    backlog: int = 128
    """
    Maximum number of pending TCP connections waiting for accept().
    """

    ssl_ctx: ssl.SSLContext | None = None
    """
    TLS context used to encrypt incoming connections, or None for plain TCP.
    """

    wire_format: WireFormat = WireFormat.binary
    """
    Framing used on the connection: length-prefixed frames, or the legacy
    newline-terminated text protocol.
    """

    max_frame_size: int | None = None
    """
    Upper bound on a single frame payload. None trusts the peer and accepts
    any length announced in the frame header.
    """

    timeout_graceful_shutdown: float = 5.0
    """
    Maximum time (in seconds) allowed for graceful shutdown:
    - active connections must close
    - background tasks registered in ServerState.tasks must complete
    After this timeout, remaining tasks are cancelled.
    """
