# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Typed extraction of raw configuration values.

Scalar accessors are exact: a bool must be a bool and a string must be a
string. Numbers go through the generic decoder in strict mode, which
accepts any numeric representation that fits the target and nothing else.

The generic decoder is backed by pydantic and fills:
    - a type or typing form (``int``, ``list[str]``, a dataclass, a
      ``TypedDict``, a ``BaseModel`` subclass): a new value is returned
    - an existing dataclass or ``BaseModel`` instance: matching fields are
      assigned onto it, other fields keep their current value

Field matching rule: mapping keys match field names exactly
(case-sensitive). A ``BaseModel`` field alias is also accepted as key.
Keys with no matching field are ignored.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from .exceptions import TypeMismatchError

T = TypeVar('T')


def _describe(path: str | None) -> str:
    return repr(path) if path is not None else 'value'


def coerce_bool(raw: Any, path: str | None = None) -> bool:
    """Return raw if it is a bool, else raise TypeMismatchError."""
    if not isinstance(raw, bool):
        raise TypeMismatchError(f"{_describe(path)} is not a bool", path)
    return raw


def coerce_str(raw: Any, path: str | None = None) -> str:
    """Return raw if it is a str, else raise TypeMismatchError.

    Numbers are not stringified.
    """
    if not isinstance(raw, str):
        raise TypeMismatchError(f"{_describe(path)} is not a string", path)
    return raw


def coerce_int(raw: Any, path: str | None = None) -> int:
    """Decode raw as an int.

    Floats are truncated toward zero (``2.7`` gives ``2``). Booleans,
    strings and non-finite floats are rejected.
    """
    if isinstance(raw, bool) or (isinstance(raw, float) and not math.isfinite(raw)):
        raise TypeMismatchError(f"{_describe(path)} is not an int", path)
    if isinstance(raw, float):
        raw = int(raw)
    return decode(raw, int, path=path, strict=True)


def coerce_float(raw: Any, path: str | None = None) -> float:
    """Decode raw as a float. Ints are accepted; booleans and strings are not."""
    if isinstance(raw, bool):
        raise TypeMismatchError(f"{_describe(path)} is not a float", path)
    return float(decode(raw, float, path=path, strict=True))


def decode(
    raw: Any,
    target: Any,
    path: str | None = None,
    strict: bool = False,
) -> Any:
    """Decode raw into target.

    Args:
        raw: The value read from the tree (mapping, list or scalar).
        target: A type/typing form to build, or a dataclass/BaseModel
            instance to update in place.
        path: Path of raw, used in error messages.
        strict: Use pydantic strict mode (no str -> int coercion, etc.).

    Returns:
        The decoded value; the updated instance when target is an instance.

    Raises:
        TypeMismatchError: If raw does not fit target. An instance target
            is left untouched in that case.
    """
    if _is_instance(target):
        return _decode_into(raw, target, path, strict)

    try:
        return TypeAdapter(target).validate_python(raw, strict=strict)
    except ValidationError as exc:
        raise TypeMismatchError(
            f"{_describe(path)} cannot be decoded as {_type_name(target)}: "
            f"{exc.error_count()} validation error(s)",
            path,
        ) from exc


def _is_instance(target: Any) -> bool:
    if isinstance(target, BaseModel):
        return True
    return dataclasses.is_dataclass(target) and not isinstance(target, type)


def _type_name(target: Any) -> str:
    return getattr(target, '__name__', None) or repr(target)


def _field_keys(target: Any) -> dict[str, str]:
    """Map accepted mapping keys to attribute names for an instance target."""
    keys: dict[str, str] = {}
    if isinstance(target, BaseModel):
        for name, field in type(target).model_fields.items():
            keys[name] = name
            if field.alias:
                keys[field.alias] = name
    else:
        for field in dataclasses.fields(target):
            if field.init:
                keys[field.name] = field.name
    return keys


def _decode_into(raw: Any, target: T, path: str | None, strict: bool) -> T:
    cls = type(target)
    if not isinstance(raw, Mapping):
        raise TypeMismatchError(
            f"{_describe(path)} is not a mapping, cannot fill {cls.__name__}", path
        )

    keys = _field_keys(target)
    updates = {keys[key]: value for key, value in raw.items() if key in keys}

    if isinstance(target, BaseModel):
        # Validation keys must follow the model's alias settings
        aliases = {
            name: field.alias or name for name, field in cls.model_fields.items()
        }
        data = {aliases[name]: getattr(target, name) for name in aliases}
        data.update({aliases[name]: value for name, value in updates.items()})
    else:
        data = {name: getattr(target, name) for name in set(keys.values())}
        data.update(updates)

    try:
        validated = TypeAdapter(cls).validate_python(data, strict=strict)
    except ValidationError as exc:
        raise TypeMismatchError(
            f"{_describe(path)} cannot be decoded into {cls.__name__}: "
            f"{exc.error_count()} validation error(s)",
            path,
        ) from exc

    for name in updates:
        setattr(target, name, getattr(validated, name))
    return target
