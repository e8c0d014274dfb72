import re
from typing import Any, Sequence

from callwire.core.errors import ArgumentError, ArityError, UnsupportedType
from callwire.core.models.procedure import ParameterKind, ProcedureEntry

NULL_TOKEN = "null"
"""
Reserved token standing for an absent optional text argument.
"""

_INTEGER = re.compile(r"[+-]?[0-9]+")


def decode_token(position: int, token: bytes | str) -> str:
    if isinstance(token, str):
        return token
    try:
        return token.decode("utf-8")
    except UnicodeDecodeError as ex:
        raise ArgumentError(position, token.decode("utf-8", "replace"), "not valid UTF-8") from ex


def coerce_integer(position: int, token: str) -> int:
    # int() would also accept surrounding whitespace and "1_000"
    if not _INTEGER.fullmatch(token):
        raise ArgumentError(position, token, "expected a base-10 integer")
    try:
        return int(token)
    except ValueError as ex:
        # more digits than the interpreter converts
        raise ArgumentError(position, token[:32] + "...", str(ex)) from ex


def coerce_argument(entry: ProcedureEntry, position: int, token: bytes | str) -> Any:
    spec = entry.descriptor.parameters[position]

    if spec.kind is ParameterKind.unsupported:
        raise UnsupportedType(position, entry.name, spec.annotation)

    text = decode_token(position, token)

    if spec.kind is ParameterKind.integer:
        return coerce_integer(position, text)
    if spec.kind is ParameterKind.optional_text:
        return None if text == NULL_TOKEN else text
    return text


def coerce_arguments(entry: ProcedureEntry, tokens: Sequence[bytes | str]) -> list[Any]:
    """
    Convert raw wire tokens into the positional arguments of `entry`.

    The token count is checked before any conversion; then each token is
    converted according to the kind recorded for its position. The first
    failure aborts the whole request.
    """
    expected = entry.descriptor.arity
    if len(tokens) != expected:
        raise ArityError(entry.name, expected, len(tokens))

    return [
        coerce_argument(entry, position, token)
        for position, token in enumerate(tokens)
    ]
