from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Optional, Protocol

from pydantic import TypeAdapter
from pydantic_core import PydanticSerializationError, to_jsonable_python


class Serializer(Protocol):
    """Byte-level serialization seam used by the token codec.

    `dumps` is called on trusted values from the calling program; any exception
    it raises is treated as a programmer error. `loads` is called on decrypted
    token contents and should raise `ValueError` (or a subclass) on bad input.
    """

    def dumps(self, value: Any) -> bytes: ...

    def loads(self, data: bytes, into: Optional[Any] = None) -> Any: ...


def _to_jsonable(obj: Any) -> Any:
    # Pydantic models, dataclasses, dates, UUIDs, enums, sets...
    try:
        return to_jsonable_python(obj)
    except PydanticSerializationError as ex:
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable") from ex


@lru_cache(maxsize=128)
def _adapter(into: Any) -> TypeAdapter:
    return TypeAdapter(into)


class JsonSerializer:
    """
    Compact JSON serializer.

    - Encoding: UTF-8, no whitespace, NaN/Infinity rejected.
    - Decoding: `into=None` returns plain JSON values (dict/list/str/int/...);
      otherwise the bytes are validated into `into` by a pydantic `TypeAdapter`
      in strict JSON mode (models, dataclasses, TypedDicts, builtins, generics),
      so mismatched scalar types are rejected rather than converted.
    """

    def dumps(self, value: Any) -> bytes:
        return json.dumps(
            value,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_to_jsonable,
        ).encode("utf-8")

    def loads(self, data: bytes, into: Optional[Any] = None) -> Any:
        if into is None:
            return json.loads(data.decode("utf-8"))
        # strict: no "123" -> 123 or 1.0 -> 1 coercion
        return _adapter(into).validate_json(data, strict=True)


DEFAULT_SERIALIZER = JsonSerializer()
