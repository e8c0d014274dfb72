import asyncio
import os
import ssl
from typing import Generator

import pytest
import yaml

from tests.fake.fake_observer import RecordingCallObserver
from tests.fake.fake_transport import FakeTransport
from tests.helpers import FakeCallwireConfig
from tests.utils import generate_cert_pair, write_pem

from callwire.bootstrap.config.settings import CallwireConfig, TLSSettings
from callwire.core.registry.registry import Registry


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def observer():
    return RecordingCallObserver()


@pytest.fixture
def invocations() -> list[tuple[str, tuple]]:
    return []


@pytest.fixture
def registry(invocations) -> Registry:
    reg = Registry()

    @reg.procedure()
    def echo(message: str) -> str:
        invocations.append(("echo", (message,)))
        return message

    @reg.procedure()
    def add(a: str, b: str) -> int:
        return int(a) + int(b)

    @reg.procedure("getByID")
    def get_by_id(ident: int) -> int:
        invocations.append(("getByID", (ident,)))
        return ident * 10

    @reg.procedure()
    def greet(name: str | None) -> str:
        return f"Hello, {name}!" if name is not None else "Hello!"

    @reg.procedure()
    def data() -> dict:
        return {"name": "callwire", "tags": ["rpc", "tcp"], "nested": {"depth": 2, "none": None}}

    @reg.procedure()
    def touch(key: str) -> None:
        invocations.append(("touch", (key,)))

    @reg.procedure("divmod")
    def divmod_(a: int, b: int) -> tuple[int, int]:
        return divmod(a, b)

    @reg.procedure()
    def fail() -> int:
        raise ValueError("boom")

    @reg.procedure()
    def ratio(x: float) -> float:
        invocations.append(("ratio", (x,)))
        return x

    @reg.procedure()
    async def nap(millis: int) -> str:
        await asyncio.sleep(millis / 1000)
        return f"slept {millis}"

    return reg


@pytest.fixture(scope="session")
def tls_settings(tmp_path_factory) -> tuple[TLSSettings, str]:
    ca_cert, server_key, server_cert = generate_cert_pair()
    base = tmp_path_factory.mktemp("tls")
    ca_path = base / "ca.pem"
    server_cert_path = base / "server.pem"
    server_key_path = base / "server.key"

    write_pem(ca_cert, ca_path)
    write_pem(server_cert, server_cert_path)
    write_pem(server_key, server_key_path)

    server_tls = TLSSettings(
        certfile=server_cert_path,
        keyfile=server_key_path,
    )
    return server_tls, str(ca_path)


@pytest.fixture(scope="session")
def config_file(tmp_path_factory, tls_settings):
    server_tls, _ = tls_settings
    base = tmp_path_factory.mktemp("config")
    file = base / "callwire.yaml"

    data = {
        "server": {
            "host": "127.0.0.1",
            "port": 0,
            "protocol": "binary",
            "backlog": 10,
            "timeout_graceful_shutdown": 1,
            "max_frame_size": 1024 * 1024,
            "tls": {
                "certfile": str(server_tls.certfile),
                "keyfile": str(server_tls.keyfile),
            },
        }
    }

    file.write_text(yaml.dump(data))
    return file


@pytest.fixture(scope="session")
def callwire_config(config_file) -> Generator[CallwireConfig, None, None]:
    backup = os.environ.copy()

    try:
        os.environ["TEST_CALLWIRECONFIG"] = str(config_file)
        yield FakeCallwireConfig()
    finally:
        os.environ.clear()
        os.environ.update(backup)


@pytest.fixture(scope="session")
def tls_contexts(tls_settings, callwire_config):
    _, cafile = tls_settings

    server_ctx = callwire_config.get_server_ssl_ctx()

    client_ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    client_ctx.load_verify_locations(cafile=cafile)

    return server_ctx, client_ctx
