import asyncio
import functools
import inspect
import logging
from typing import Any, Sequence

from callwire.core.dispatch.coercion import coerce_arguments
from callwire.core.dispatch.results import error_record, serialize_result
from callwire.core.errors import (
    InvocationFailure,
    ProcedureNotFound,
    RequestError,
    SerializationFailure,
)
from callwire.core.models.procedure import ProcedureEntry
from callwire.core.registry.registry import Registry


class ProcedureCaller:
    """
    Runs one request against the registry: resolve the procedure, coerce the
    raw tokens, invoke the callable and serialize what it returned.

    Coroutine procedures are awaited on the event loop. Plain callables run
    in the loop's default executor so that a slow procedure only holds up
    the connection that called it.

    Every request-level failure is turned into an error record payload; the
    caller never lets one escape, so a dispatcher can always answer and move
    on to the next request.
    """

    def __init__(self, registry: Registry) -> None:
        self._registry = registry
        self._logger = logging.getLogger("core.dispatch.caller")

    def resolve(self, name: str) -> ProcedureEntry:
        entry = self._registry.lookup(name)
        if entry is None:
            raise ProcedureNotFound(name)
        return entry

    async def invoke(self, entry: ProcedureEntry, args: Sequence[Any]) -> Any:
        try:
            if entry.descriptor.is_coroutine:
                result = await entry.func(*args)
            else:
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(
                    None, functools.partial(entry.func, *args)
                )

            if inspect.isawaitable(result):
                result = await result
        except RequestError:
            raise
        except (Exception, SystemExit) as exc:
            # SystemExit from a procedure must not stop the server
            self._logger.error(
                f"Procedure '{entry.name}' failed: {exc!r}", exc_info=exc
            )
            raise InvocationFailure(str(exc) or type(exc).__name__) from exc

        return result

    async def respond(
        self,
        entry: ProcedureEntry,
        tokens: Sequence[bytes | str],
    ) -> tuple[bytes, str]:
        """
        Return the response payload for a call of `entry` with `tokens`,
        together with the outcome: "ok" or the name of the error raised.
        """
        try:
            args = coerce_arguments(entry, tokens)
            result = await self.invoke(entry, args)
            return self.serialize(entry, result), "ok"
        except RequestError as exc:
            return self.failure(exc)

    def serialize(self, entry: ProcedureEntry, result: Any) -> bytes:
        try:
            return serialize_result(entry.descriptor, result)
        except RequestError:
            raise
        except Exception as exc:
            self._logger.error(
                f"Cannot serialize the result of '{entry.name}': {exc!r}", exc_info=exc
            )
            raise SerializationFailure(str(exc) or type(exc).__name__) from exc

    @staticmethod
    def failure(exc: RequestError) -> tuple[bytes, str]:
        return error_record(exc.message), type(exc).__name__
