"""
Conversion of procedure results into response payloads.

The declared result arity decides the layout:

- zero results: an empty payload
- one result: primitives (int, str, bool, float, None) as canonical text,
  bytes as-is, structured values (mappings, sequences, sets, dataclass
  instances, pydantic models) as compact JSON
- several results: the canonical text of each value joined by one space;
  only primitives are accepted there
"""
import dataclasses
import json
import math
from collections.abc import Mapping, Sequence, Set
from typing import Any

from pydantic import BaseModel

from callwire.core.errors import SerializationFailure
from callwire.core.models.procedure import ProcedureDescriptor, ResultArity

PRIMITIVES = (bool, int, float, str, type(None))


def is_primitive(value: Any) -> bool:
    return isinstance(value, PRIMITIVES)


def canonical_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        try:
            return str(int(value))
        except ValueError as ex:
            raise SerializationFailure(f"integer result is not serializable: {ex}") from ex
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "+Inf" if value > 0 else "-Inf"
        return repr(float(value))
    if isinstance(value, str):
        return str.__str__(value)
    raise SerializationFailure(
        f"{type(value).__name__} value has no canonical text form"
    )


def _structured(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (Set, Sequence)) and not isinstance(obj, (str, bytes, bytearray)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not serializable")


def to_json(value: Any) -> str:
    try:
        return json.dumps(
            value,
            default=_structured,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError, RecursionError) as ex:
        raise SerializationFailure(f"result is not serializable: {ex}") from ex


def encode_single(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if is_primitive(value):
        return canonical_text(value).encode("utf-8")
    return to_json(value).encode("utf-8")


def encode_many(value: Any, width: int) -> bytes:
    if not isinstance(value, (tuple, list)):
        raise SerializationFailure(
            f"expected {width} results, got a single {type(value).__name__}"
        )
    if len(value) != width:
        raise SerializationFailure(f"expected {width} results, got {len(value)}")

    parts = []
    for item in value:
        if not is_primitive(item):
            raise SerializationFailure(
                f"{type(item).__name__} is not allowed in a multi-value result"
            )
        parts.append(canonical_text(item))

    return " ".join(parts).encode("utf-8")


def serialize_result(descriptor: ProcedureDescriptor, value: Any) -> bytes:
    if descriptor.result_arity is ResultArity.zero:
        return b""
    if descriptor.result_arity is ResultArity.many:
        return encode_many(value, descriptor.result_width)
    return encode_single(value)


def error_record(message: str) -> bytes:
    return to_json({"error": message}).encode("utf-8")
