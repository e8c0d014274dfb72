"""
Derivation of a ProcedureDescriptor from a callable's declared signature.

The callable is inspected, never called. Each positional parameter is mapped
to the ParameterKind coercion has to produce for it:

    int             -> integer
    str             -> text
    str | None      -> optional_text
    no annotation   -> text (the raw token is passed through)
    anything else   -> unsupported

Unsupported parameters do not prevent registration. They are reported on
the first call of the procedure.

The return annotation gives the result arity: `None` means no result, a
fixed-length `tuple[...]` means several results, anything else one result.
"""
import functools
import inspect
import types
from typing import Any, Callable, Union, get_args, get_origin, get_type_hints

from callwire.core.models.procedure import (
    ParameterKind,
    ParameterSpec,
    ProcedureDescriptor,
    ResultArity,
)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def describe_annotation(annotation: Any) -> str:
    if annotation is inspect.Parameter.empty:
        return "any"
    if annotation is None or annotation is type(None):
        return "None"
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation.__qualname__
    if isinstance(annotation, str):
        return annotation
    return repr(annotation).replace("typing.", "")


def _is_optional_text(annotation: Any) -> bool:
    if get_origin(annotation) not in (Union, types.UnionType):
        return False
    args = get_args(annotation)
    return len(args) == 2 and str in args and type(None) in args


_STRING_KINDS = {
    "int": ParameterKind.integer,
    "str": ParameterKind.text,
    "str | None": ParameterKind.optional_text,
    "None | str": ParameterKind.optional_text,
    "Optional[str]": ParameterKind.optional_text,
}


def parameter_kind(annotation: Any) -> ParameterKind:
    if annotation is inspect.Parameter.empty:
        return ParameterKind.text
    if isinstance(annotation, str):
        return _STRING_KINDS.get(annotation.replace("typing.", "").strip(), ParameterKind.unsupported)
    # bool is an int subclass but "true"/"1" are not base-10 integers here
    if annotation is int:
        return ParameterKind.integer
    if annotation is str:
        return ParameterKind.text
    if _is_optional_text(annotation):
        return ParameterKind.optional_text
    return ParameterKind.unsupported


def result_shape(annotation: Any) -> tuple[ResultArity, int]:
    if annotation is None or annotation is type(None) or annotation == "None":
        return ResultArity.zero, 0

    if get_origin(annotation) is tuple:
        args = get_args(annotation)
        if args and args != ((),) and Ellipsis not in args:
            return ResultArity.many, len(args)

    return ResultArity.one, 1


def _resolve_hints(func: Callable[..., Any]) -> dict[str, Any]:
    target: Any = func
    if isinstance(func, type):
        target = func.__init__
    elif not inspect.isroutine(func) and not isinstance(func, functools.partial):
        # callable instance: the annotations live on __call__
        target = type(func).__call__

    try:
        hints = get_type_hints(target)
    except (NameError, TypeError):
        # unresolvable forward references or objects without annotations:
        # the raw annotations from the signature are used instead
        return {}

    return hints


def extract_descriptor(func: Callable[..., Any]) -> ProcedureDescriptor:
    if not callable(func):
        raise TypeError(f"{func!r} is not callable")

    try:
        signature = inspect.signature(func)
    except ValueError as ex:
        raise TypeError(f"Cannot inspect the signature of {func!r}: {ex}") from ex
    hints = _resolve_hints(func)

    parameters: list[ParameterSpec] = []
    for name, param in signature.parameters.items():
        annotation = hints.get(name, param.annotation)

        if param.kind in _POSITIONAL:
            kind = parameter_kind(annotation)
            label = describe_annotation(annotation)
        elif param.kind is inspect.Parameter.VAR_POSITIONAL:
            kind = ParameterKind.unsupported
            label = f"*{describe_annotation(annotation)}"
        elif param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is inspect.Parameter.empty:
            kind = ParameterKind.unsupported
            label = f"keyword-only {describe_annotation(annotation)}"
        else:
            # keyword-only parameters with a default and **kwargs are never
            # filled from the wire
            continue

        parameters.append(ParameterSpec(name=name, kind=kind, annotation=label))

    return_annotation = hints.get("return", signature.return_annotation)
    # calling a class always yields one instance
    if return_annotation is inspect.Signature.empty or isinstance(func, type):
        arity, width = ResultArity.one, 1
    else:
        arity, width = result_shape(return_annotation)

    return ProcedureDescriptor(
        parameters=tuple(parameters),
        result_arity=arity,
        result_width=width,
        is_coroutine=inspect.iscoroutinefunction(func),
    )
