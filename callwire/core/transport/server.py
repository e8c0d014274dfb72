import asyncio
import logging

from callwire.core.models.config import ServerConfig
from callwire.core.models.state import ServerState
from callwire.core.registry.registry import Registry
from callwire.core.transport.protocol import Protocol


class CallServer:
    """
    Owns the lifecycle of the TCP listener that accepts client connections,
    instantiates a Protocol for each of them, and coordinates graceful
    shutdown.

    It binds to the configured host and port with asyncio's create_server.
    Every accepted connection gets its own Protocol and runs the configured
    application in its own task; there is no limit on the number of
    connections. Each Protocol shares the ServerState, which tracks active
    connections and their tasks.

    When a registry is given, `start()` freezes it and logs the table of
    registered procedures before accepting connections.

    On shutdown, CallServer closes the listening socket, asks all active
    connections to shut down, and waits for both client connections and
    their tasks to complete. If the graceful shutdown timeout is exceeded,
    any remaining tasks are cancelled and an error is logged.
    """
    def __init__(
        self,
        config: ServerConfig,
        registry: Registry | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._loop = loop or asyncio.get_event_loop()
        self.state = ServerState()
        self._logger = logging.getLogger("core.transport.server")

        self._server: asyncio.AbstractServer | None = None

    @property
    def port(self) -> int | None:
        """Port actually bound, useful when the configured port is 0."""
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    def create_protocol(self) -> asyncio.Protocol:
        return Protocol(
            config=self._config,
            server_state=self.state,
            loop=self._loop,
        )

    async def start(self) -> None:
        config = self._config

        if self._registry is not None:
            self._registry.freeze()
            self._log_procedures(self._registry)

        self._server = await self._loop.create_server(
            self.create_protocol,
            host=config.host,
            port=config.port,
            backlog=config.backlog,
            ssl=config.ssl_ctx,
        )

        scheme = "tls" if config.ssl_ctx else "tcp"
        self._logger.info(
            f"Listening on {scheme}://{config.host}:{self.port} "
            f"({config.wire_format} protocol)"
        )

    async def shutdown(self) -> None:
        if self._server:
            self._server.close()

        for connection in self.state.connections.copy():
            connection.shutdown()

        try:
            await asyncio.wait_for(
                self._wait_task_complete(),
                timeout=self._config.timeout_graceful_shutdown
            )
        except asyncio.TimeoutError:
            self._logger.error(
                f"Cancel {len(self.state.tasks)} running task(s), "
                f"timeout graceful shutdown: {self.state.tasks}"
            )
            for task in self.state.tasks:
                task.cancel("Task cancelled, timeout graceful shutdown exceeded")

    def _log_procedures(self, registry: Registry) -> None:
        self._logger.info(f"Registered procedures ({len(registry)})")
        for entry in registry.entries():
            self._logger.info(
                f"[PROC] {entry.name:<30} | [Args] {entry.descriptor.annotations()}"
            )

    async def _wait_task_complete(self) -> None:
        if self.state.connections:
            self._logger.info("Waiting for client connections to close.")

        while self.state.connections:
            await asyncio.sleep(0.1)

        if self.state.tasks:
            self._logger.info("Waiting for connection tasks to complete.")

        while self.state.tasks:
            await asyncio.sleep(0.1)

        if self._server:
            await self._server.wait_closed()
