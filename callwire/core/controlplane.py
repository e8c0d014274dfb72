import asyncio
import logging

from callwire.bootstrap.config.settings import CallwireConfig
from callwire.core.models.config import ServerConfig
from callwire.core.registry.registry import Registry
from callwire.core.transport.application import Application
from callwire.core.transport.server import CallServer


class ControlPlane:
    """
    Wires the settings, the registry and the per-connection application into
    a CallServer, and runs it until asked to stop.
    """
    def __init__(
        self,
        config: CallwireConfig,
        registry: Registry,
        app: Application,
    ) -> None:
        self._config = config
        self._registry = registry
        self._app = app
        self._loop = self._create_event_loop()
        self._server_config = self._build_server_config()
        self._server = CallServer(
            config=self._server_config,
            registry=self._registry,
            loop=self._loop,
        )
        self._logger = logging.getLogger("callwire.controlplane")

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def server(self) -> CallServer:
        return self._server

    async def start(self, stop_event: asyncio.Event) -> None:
        await self._server.start()
        await stop_event.wait()
        self._logger.info("Shutting down")
        await self._server.shutdown()

    def _build_server_config(self) -> ServerConfig:
        settings = self._config.server

        return ServerConfig(
            app=self._app,
            host=settings.host,
            port=settings.port,
            backlog=settings.backlog,
            ssl_ctx=self._config.get_server_ssl_ctx(),
            wire_format=settings.protocol,
            max_frame_size=settings.max_frame_size,
            timeout_graceful_shutdown=settings.timeout_graceful_shutdown,
        )

    @staticmethod
    def _create_event_loop() -> asyncio.AbstractEventLoop:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        return loop
