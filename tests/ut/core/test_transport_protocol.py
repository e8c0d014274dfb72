import asyncio
import pytest

from tests.utils import frames

from callwire.core.models.config import ServerConfig
from callwire.core.models.state import ServerState
from callwire.core.transport.addr import current_peer
from callwire.core.transport.framing import WireFormat, encode_frame
from callwire.core.transport.protocol import Protocol


def make_protocol(app, **kwargs):
    config = ServerConfig(app=app, host="127.0.0.1", port=0, **kwargs)
    state = ServerState()
    protocol = Protocol(config, state, loop=asyncio.get_running_loop())
    return protocol, state


async def wait_tasks(state):
    await asyncio.wait_for(asyncio.gather(*list(state.tasks)), timeout=1)


@pytest.mark.ut
@pytest.mark.asyncio
async def test_payloads_reach_application_in_order(transport):
    received = []
    peers = []

    async def app(receive, send):
        peers.append(current_peer.get())
        while (payload := await receive()) is not None:
            received.append(payload)
            await send(payload.upper())

    protocol, state = make_protocol(app)
    protocol.connection_made(transport)
    assert protocol in state.connections

    data = frames("one", "two")
    protocol.data_received(data[:5])
    protocol.data_received(data[5:])
    await asyncio.sleep(0.01)
    protocol.connection_lost(None)
    await wait_tasks(state)

    assert received == [b"one", b"two"]
    assert transport.buffer == frames("ONE", "TWO")
    assert peers == ["127.0.0.1:9999"]
    assert protocol not in state.connections
    assert not state.tasks


@pytest.mark.ut
@pytest.mark.asyncio
async def test_oversized_frame_closes_connection(transport):
    received = []

    async def app(receive, send):
        while (payload := await receive()) is not None:
            received.append(payload)

    protocol, state = make_protocol(app, max_frame_size=4)
    protocol.connection_made(transport)

    protocol.data_received(encode_frame(b"ok"))
    protocol.data_received(encode_frame(b"too large"))
    protocol.data_received(encode_frame(b"late"))
    await wait_tasks(state)

    assert received == [b"ok"]
    assert transport.is_closing()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_truncated_frame_ends_stream(transport, caplog):
    received = []

    async def app(receive, send):
        while (payload := await receive()) is not None:
            received.append(payload)

    protocol, state = make_protocol(app)
    protocol.connection_made(transport)

    protocol.data_received(encode_frame(b"whole") + encode_frame(b"partial")[:-3])
    protocol.connection_lost(None)
    await wait_tasks(state)

    assert received == [b"whole"]
    assert "Short read: expected 7 byte(s), received 4" in caplog.text


@pytest.mark.ut
@pytest.mark.asyncio
async def test_line_protocol(transport):
    received = []

    async def app(receive, send):
        while (payload := await receive()) is not None:
            received.append(payload)
            await send(b"ok")

    protocol, state = make_protocol(app, wire_format=WireFormat.line)
    protocol.connection_made(transport)

    protocol.data_received(b"call echo a\ncall echo b\r\n")
    await asyncio.sleep(0.01)
    protocol.connection_lost(None)
    await wait_tasks(state)

    assert received == [b"call echo a", b"call echo b"]
    assert transport.buffer == b"ok\nok\n"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_shutdown_closes_transport(transport):
    async def app(receive, send):
        await receive()

    protocol, state = make_protocol(app)
    protocol.connection_made(transport)
    protocol.shutdown()

    assert transport.is_closing()
    protocol.connection_lost(None)
    await wait_tasks(state)


@pytest.mark.ut
@pytest.mark.asyncio
async def test_reading_paused_until_queue_drained(transport):
    release = asyncio.Event()
    received = []

    async def app(receive, send):
        received.append(await receive())
        await release.wait()
        while (payload := await receive()) is not None:
            received.append(payload)

    protocol, state = make_protocol(app)
    protocol.connection_made(transport)

    protocol.data_received(frames("echo", "a", "echo", "b"))
    await asyncio.sleep(0.01)

    assert not transport.is_reading()
    assert received == [b"echo"]

    release.set()
    await asyncio.sleep(0.01)

    assert transport.is_reading()
    assert received == [b"echo", b"a", b"echo", b"b"]

    protocol.connection_lost(None)
    await wait_tasks(state)
