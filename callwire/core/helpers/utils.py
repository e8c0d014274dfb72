import asyncio
import contextlib
import functools
import importlib
import logging
import pkgutil
import signal
import sys
import threading
from collections.abc import Callable
from types import FrameType
from typing import Any, Generator

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s"

SHUTDOWN_SIGNALS: tuple[int, ...] = (
    signal.SIGINT,
    signal.SIGTERM,
)

if sys.platform == "win32":
    SHUTDOWN_SIGNALS += (signal.SIGBREAK,)


@contextlib.contextmanager
def setup_signal_handler() -> Generator[asyncio.Event, None, None]:
    """
    Turn SIGINT/SIGTERM into an asyncio.Event for the duration of the block.

    Signals received meanwhile are re-raised, in reverse order, once the
    original handlers are restored, so the process still terminates the way
    it would have without callwire in the way.
    """
    stop_event = asyncio.Event()

    # signal handlers can only be installed from the main thread
    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return

    received: list[int] = []

    def handle(sig: int, frame: FrameType | None) -> None:
        received.append(sig)
        stop_event.set()

    previous = {sig: signal.signal(sig, handle) for sig in SHUTDOWN_SIGNALS}

    try:
        yield stop_event
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

        for sig in reversed(received):
            if previous[sig] is not handle:
                signal.raise_signal(sig)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def import_submodules(package: str) -> list[str]:
    """
    Import every direct submodule of `package` and return their names.
    Modules registering procedures at import time rely on this.
    """
    py_package = importlib.import_module(package)
    names = []
    for module_info in pkgutil.iter_modules(py_package.__path__):
        name = f"{package}.{module_info.name}"
        importlib.import_module(name)
        names.append(name)
    return names


def scan(*packages: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator importing the submodules of `packages` each time the decorated
    function is called, right before running it.
    """
    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for package in packages:
                import_submodules(package)
            return func(*args, **kwargs)

        return wrapper

    return decorator
