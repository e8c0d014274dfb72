import json
from functools import lru_cache

from pydantic import ValidationError

from callwire.bootstrap.config.settings import CallwireConfig
from callwire.core.controlplane import ControlPlane
from callwire.core.dispatch.dispatcher import Dispatcher
from callwire.core.dispatch.line import LineDispatcher
from callwire.core.ports.observer import CallObserver
from callwire.core.registry.registry import Registry
from callwire.core.transport.application import Application
from callwire.core.transport.framing import WireFormat
from callwire.infra.logging_observer import LoggingCallObserver


@lru_cache
def get_cp() -> ControlPlane:
    return ControlPlane(
        config=get_config(),
        registry=get_registry(),
        app=get_app(),
    )


@lru_cache
def get_registry() -> Registry:
    return Registry()


@lru_cache
def get_observer() -> CallObserver:
    return LoggingCallObserver()


@lru_cache
def get_app() -> Application:
    config = get_config()
    if config.server.protocol is WireFormat.line:
        return LineDispatcher(get_registry(), get_observer())
    return Dispatcher(get_registry(), get_observer())


@lru_cache
def get_config() -> CallwireConfig:
    try:
        return CallwireConfig()
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(part) for part in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))
