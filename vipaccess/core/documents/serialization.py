"""
Translation between document models and stored JSON.

Stored documents use camelCase keys (videoFileKey, isInitialized, ...)
while the models use snake_case attributes. The mapping is mechanical,
so it is derived from the dataclass fields instead of written per model.

Decoding is lenient about extra keys (ignored) and strict about types:
a value that does not fit its field raises DocumentValidationError.
"""

import json
from dataclasses import MISSING, fields, is_dataclass
from enum import Enum
from typing import Any, Type, TypeVar, Union, get_args, get_origin, get_type_hints

from .errors import DocumentValidationError

T = TypeVar("T")


def to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_document(obj: Any) -> dict[str, Any]:
    """Dataclass -> JSON-ready dict. None-valued fields are left out."""
    if not is_dataclass(obj):
        raise TypeError(f"Expected a dataclass instance, got {type(obj).__name__}")

    document = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        document[to_camel(f.name)] = _encode(value)
    return document


def _encode(value: Any) -> Any:
    if is_dataclass(value):
        return to_document(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


def from_document(cls: Type[T], data: Any) -> T:
    """JSON dict -> dataclass. Accepts camelCase or snake_case keys."""
    if not isinstance(data, dict):
        raise DocumentValidationError(
            f"{cls.__name__} document must be an object, got {type(data).__name__}"
        )

    hints = get_type_hints(cls)
    kwargs = {}
    for f in fields(cls):
        if not f.init:
            continue
        camel = to_camel(f.name)
        if camel in data:
            raw = data[camel]
        elif f.name in data:
            raw = data[f.name]
        else:
            continue
        has_default = f.default is not MISSING or f.default_factory is not MISSING
        if raw is None and has_default and f.default is not None:
            # explicit null falls back to the field default
            continue
        kwargs[f.name] = _decode(hints[f.name], raw, f"{cls.__name__}.{camel}")

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise DocumentValidationError(f"Invalid {cls.__name__} document: {e}") from e


def _decode(tp: Any, raw: Any, where: str) -> Any:
    origin = get_origin(tp)

    if origin is Union:
        if raw is None:
            return None
        options = [arg for arg in get_args(tp) if arg is not type(None)]
        return _decode(options[0], raw, where)

    if origin is list:
        if not isinstance(raw, list):
            raise DocumentValidationError(f"{where} must be a list")
        (item_type,) = get_args(tp) or (Any,)
        return [_decode(item_type, item, where) for item in raw]

    if origin is dict:
        if not isinstance(raw, dict):
            raise DocumentValidationError(f"{where} must be an object")
        return dict(raw)

    if is_dataclass(tp):
        return from_document(tp, raw)

    if isinstance(tp, type) and issubclass(tp, Enum):
        try:
            return tp(raw)
        except ValueError:
            allowed = ", ".join(str(member.value) for member in tp)
            raise DocumentValidationError(f"{where} must be one of: {allowed}") from None

    if tp is bool:
        if not isinstance(raw, bool):
            raise DocumentValidationError(f"{where} must be a boolean")
        return raw

    if tp is int:
        if isinstance(raw, bool) or not isinstance(raw, int):
            if isinstance(raw, float) and raw.is_integer():
                return int(raw)
            raise DocumentValidationError(f"{where} must be an integer")
        return raw

    if tp is float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise DocumentValidationError(f"{where} must be a number")
        return float(raw)

    if tp is str:
        if not isinstance(raw, str):
            raise DocumentValidationError(f"{where} must be a string")
        return raw

    return raw


def dumps(document: Any) -> bytes:
    """Pretty-printed UTF-8 JSON, the on-disk format for every document."""
    return json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")
