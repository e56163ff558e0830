from __future__ import annotations

import copy
from collections.abc import Mapping
from enum import Enum
from typing import Any

from bridge.core.errors import MergeIncompatibilityError


class JSONKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def json_kind(value: Any) -> JSONKind:
    if value is None:
        return JSONKind.NULL
    # bool is an int subclass, so it has to be checked first.
    if isinstance(value, bool):
        return JSONKind.BOOL
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, (list, tuple)):
        return JSONKind.ARRAY
    if isinstance(value, Mapping):
        return JSONKind.OBJECT
    raise MergeIncompatibilityError(f"unsupported JSON value of type {type(value).__name__}")


def merge_data(base: Any, incoming: Any) -> dict[str, Any]:
    """Merge ``incoming`` into ``base`` and return the result as a new object.

    Both sides must be JSON objects; ``None`` counts as an empty object. Keys
    present on both sides take the incoming value, except that nested objects
    are merged key by key. Replacing an object with any non-object value is
    rejected. Neither argument is modified.
    """
    base_kind = json_kind(base)
    incoming_kind = json_kind(incoming)
    if base_kind is JSONKind.NULL:
        base, base_kind = {}, JSONKind.OBJECT
    if incoming_kind is JSONKind.NULL:
        incoming, incoming_kind = {}, JSONKind.OBJECT
    if base_kind is not JSONKind.OBJECT or incoming_kind is not JSONKind.OBJECT:
        raise MergeIncompatibilityError(f"cannot merge {incoming_kind.value} into {base_kind.value}")

    merged = copy.deepcopy(dict(base))
    _merge_into(merged, incoming, path="")
    return merged


def _merge_into(target: dict[str, Any], incoming: Mapping[str, Any], *, path: str) -> None:
    for key, value in incoming.items():
        key_path = f"{path}.{key}" if path else str(key)
        value_kind = json_kind(value)
        if key not in target:
            target[key] = copy.deepcopy(value)
            continue

        current = target[key]
        current_kind = json_kind(current)
        if current_kind is JSONKind.OBJECT and value_kind is JSONKind.OBJECT:
            nested = dict(current)
            _merge_into(nested, value, path=key_path)
            target[key] = nested
        elif current_kind is JSONKind.OBJECT:
            raise MergeIncompatibilityError(f"cannot merge {value_kind.value} into object at key {key_path!r}")
        else:
            target[key] = copy.deepcopy(value)
