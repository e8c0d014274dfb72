import logging
from typing import Any, Callable, TypeVar

from callwire.core.models.procedure import ProcedureEntry
from callwire.core.registry.descriptor import extract_descriptor

F = TypeVar("F", bound=Callable[..., Any])


class Registry:
    """
    Maps procedure names to their callables and derived descriptors.

    Procedures are registered during startup, before the server accepts
    connections. Each registration derives the descriptor eagerly from the
    callable's signature without calling it. Registering a name that already
    exists replaces the previous entry. There is no deregistration.

    The server freezes the registry when it starts serving: connections then
    only read from it, which needs no locking. Registering after `freeze()`
    raises a RuntimeError, since mutating the mapping while connections read
    it is not supported.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ProcedureEntry] = {}
        self._frozen = False
        self._logger = logging.getLogger("core.registry.registry")

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def register(self, name: str, func: Callable[..., Any]) -> ProcedureEntry:
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{name}': registry is frozen while serving"
            )

        entry = ProcedureEntry(
            name=name,
            func=func,
            descriptor=extract_descriptor(func),
        )
        if name in self:
            self._logger.info(f"Replacing procedure '{name}'")
        self._entries[name] = entry
        self._logger.debug(
            f"Registered '{name}' {entry.descriptor.annotations()} "
            f"-> {entry.descriptor.result_arity}"
        )
        return entry

    def procedure(self, name: str | None = None) -> Callable[[F], F]:
        """
        Decorator registering the decorated callable, under its own
        `__name__` unless a name is given. The callable is returned unchanged.
        """
        def decorator(func: F) -> F:
            self.register(name or func.__name__, func)
            return func

        return decorator

    def lookup(self, name: str) -> ProcedureEntry | None:
        return self._entries.get(name)

    def entries(self) -> list[ProcedureEntry]:
        return [self._entries[name] for name in sorted(self._entries)]
