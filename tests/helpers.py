import asyncio
import contextlib
import os
import ssl
from typing import AsyncIterator

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from callwire.bootstrap.config.settings import CallwireConfig
from callwire.core.models.config import ServerConfig
from callwire.core.registry.registry import Registry
from callwire.core.transport.application import Application
from callwire.core.transport.framing import WireFormat
from callwire.core.transport.server import CallServer


class FakeCallwireConfig(CallwireConfig, BaseSettings):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_CALLWIRECONFIG"]),
        )


@contextlib.asynccontextmanager
async def serve(
    app: Application,
    registry: Registry | None = None,
    wire_format: WireFormat = WireFormat.binary,
    max_frame_size: int | None = None,
    ssl_ctx: ssl.SSLContext | None = None,
) -> AsyncIterator[CallServer]:
    config = ServerConfig(
        app=app,
        host="127.0.0.1",
        port=0,
        backlog=10,
        ssl_ctx=ssl_ctx,
        wire_format=wire_format,
        max_frame_size=max_frame_size,
        timeout_graceful_shutdown=1.0,
    )
    server = CallServer(config, registry=registry, loop=asyncio.get_running_loop())
    await server.start()
    try:
        yield server
    finally:
        await server.shutdown()
