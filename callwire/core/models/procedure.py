from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable


class ParameterKind(StrEnum):
    """
    What coercion must produce for one positional parameter.
    """
    integer = "integer"
    text = "text"
    optional_text = "optional_text"
    unsupported = "unsupported"


class ResultArity(StrEnum):
    """
    Number of values a procedure yields, as declared by its return annotation.
    """
    zero = "zero"
    one = "one"
    many = "many"


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    kind: ParameterKind
    annotation: str
    """
    Human readable form of the declared annotation, e.g. "int" or "str | None".
    """


@dataclass(frozen=True)
class ProcedureDescriptor:
    """
    The derived shape of a registered procedure.

    Built once at registration time and never modified afterwards, so the
    per-call path never needs to inspect the callable again.
    """
    parameters: tuple[ParameterSpec, ...]

    result_arity: ResultArity

    result_width: int = 1
    """
    Number of values expected when result_arity is `many`.
    """

    is_coroutine: bool = False

    @property
    def arity(self) -> int:
        return len(self.parameters)

    def annotations(self) -> list[str]:
        return [p.annotation for p in self.parameters]


@dataclass(frozen=True)
class ProcedureEntry:
    name: str
    func: Callable[..., Any]
    descriptor: ProcedureDescriptor
