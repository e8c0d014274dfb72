import ssl
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from callwire.bootstrap.config.loader import get_configfile
from callwire.core.transport.framing import WireFormat


class TLSSettings(BaseModel):
    certfile: Annotated[
        Path,
        Field(
            description=(
                "Path to the server TLS certificate (PEM).\n"
                "TLS only encrypts the connection; clients are not authenticated."
            )
        )
    ]

    keyfile: Annotated[
        Path,
        Field(description="Path to the server TLS private key (PEM).")
    ]

    @field_validator("certfile", "keyfile")
    @classmethod
    def validate_path(cls, v: Path) -> Path:
        if not v.exists():
            raise ValueError(f"Path {v} does not exist.")
        return v


class ServerSettings(BaseModel):
    host: Annotated[
        str,
        Field(
            description="Bind address of the call listener.",
            default="127.0.0.1"
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port of the call listener. 0 lets the OS choose.",
            default=8080,
            ge=0,
            le=65535,
        )
    ]

    protocol: Annotated[
        WireFormat,
        Field(
            description=(
                "Wire protocol spoken on the listener.\n"
                "binary → 8-byte length-prefixed frames (default).\n"
                "line   → legacy newline-terminated text requests."
            ),
            default=WireFormat.binary
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=128
        )
    ]

    timeout_graceful_shutdown: Annotated[
        float,
        Field(
            description="Maximum time allowed for graceful shutdown.",
            default=5.0
        )
    ]

    max_frame_size: Annotated[
        int | None,
        Field(
            description=(
                "Maximum accepted frame payload in bytes.\n"
                "Unset trusts the peer and accepts any announced length."
            ),
            default=None,
            ge=0,
        )
    ]

    tls: Annotated[
        TLSSettings | None,
        Field(
            description="Optional TLS configuration. Plain TCP when unset.",
            default=None
        )
    ]


class CallwireConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CALLWIRE_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    server: Annotated[
        ServerSettings,
        Field(
            description=(
                "Listener configuration.\n"
                "Controls where the server accepts connections, which wire\n"
                "protocol it speaks, TLS, framing limits and graceful shutdown."
            ),
            default_factory=ServerSettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)
        configfile = get_configfile()
        if configfile is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=configfile),)
        return sources

    def get_server_ssl_ctx(self) -> ssl.SSLContext | None:
        tls = self.server.tls
        if tls is None:
            return None

        ctx = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
        ctx.load_cert_chain(certfile=tls.certfile, keyfile=tls.keyfile)
        return ctx
