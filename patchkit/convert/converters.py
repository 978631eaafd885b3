"""Stock coercions for the value shapes a decoded JSON body produces.

None of these are installed by default; pass ``STOCK_COERCIONS`` (or any
subset, in any order) to the engine explicitly.
"""
from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping
from datetime import datetime
from typing import Any, List, Tuple, Union

from dateutil import parser as dateparser
from pydantic import BaseModel

from patchkit.core.coerce import Coercion, FieldSlot
from patchkit.core.kinds import ValueKind, value_kind

_NUMERIC = (ValueKind.INTEGER, ValueKind.FLOAT)


def unwrap_optional(annotation: Any) -> Tuple[Any, bool]:
    """Split ``Optional[T]`` (or ``T | None``) into ``(T, True)``."""
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        inner = [arg for arg in args if arg is not type(None)]
        if len(inner) == 1 and len(args) == 2:
            return inner[0], True
    return annotation, False


def coerce_null(slot: FieldSlot, raw: Any) -> bool:
    """Assign an explicit null to an optional field."""
    _, optional = unwrap_optional(slot.annotation)
    if raw is None and optional:
        slot.assign(None)
        return True
    return False


def coerce_optional(slot: FieldSlot, raw: Any) -> bool:
    """Assign a value whose exact type is the one wrapped by ``Optional``."""
    inner, optional = unwrap_optional(slot.annotation)
    if optional and isinstance(inner, type) and type(raw) is inner:
        slot.assign(raw)
        return True
    return False


def coerce_number(slot: FieldSlot, raw: Any) -> bool:
    """Convert between int and float fields.

    A float lands in an int field only when it holds a whole number, so
    ``1.9``, ``inf`` and ``nan`` are rejected rather than truncated.
    """
    inner, _ = unwrap_optional(slot.annotation)
    kind = value_kind(raw)
    if inner not in (int, float) or kind not in _NUMERIC:
        return False
    try:
        if inner is int and kind is ValueKind.FLOAT and not float(raw).is_integer():
            return False
        value = inner(raw)
    except (OverflowError, ValueError):
        return False
    slot.assign(value)
    return True


def coerce_datetime(slot: FieldSlot, raw: Any) -> bool:
    """Parse an ISO-8601 string into a ``datetime`` field."""
    inner, _ = unwrap_optional(slot.annotation)
    if inner is not datetime or value_kind(raw) is not ValueKind.STRING:
        return False
    try:
        parsed = dateparser.isoparse(raw)
    except ValueError:
        return False
    slot.assign(parsed)
    return True


def coerce_nested(slot: FieldSlot, raw: Any) -> bool:
    """Build a nested dataclass or pydantic record from a mapping."""
    inner, _ = unwrap_optional(slot.annotation)
    if not isinstance(raw, Mapping) or not isinstance(inner, type):
        return False
    try:
        if issubclass(inner, BaseModel):
            value = inner.model_validate(dict(raw))
        elif dataclasses.is_dataclass(inner):
            value = inner(**raw)
        else:
            return False
    except (TypeError, ValueError):
        return False
    slot.assign(value)
    return True


STOCK_COERCIONS: List[Coercion] = [
    coerce_null,
    coerce_optional,
    coerce_number,
    coerce_datetime,
    coerce_nested,
]
