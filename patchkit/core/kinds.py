"""Closed classification of the raw values found in a partial map."""
from __future__ import annotations

import enum
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any


class ValueKind(str, enum.Enum):
    """Kinds of external values a partial map can carry."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    NULL = "null"
    AGGREGATE = "aggregate"
    OPAQUE = "opaque"


def value_kind(value: Any) -> ValueKind:
    """Return the kind of a raw value; bool is checked before int."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, (float, Decimal)):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (datetime, date, time)):
        return ValueKind.TIMESTAMP
    if isinstance(value, (Mapping, list, tuple)):
        return ValueKind.AGGREGATE
    return ValueKind.OPAQUE


def is_direct_match(value: Any, annotation: Any) -> bool:
    """True when the raw value's exact type is the declared type.

    Subclasses do not match, so ``True`` never lands directly in an ``int``
    field and generic aliases such as ``Optional[str]`` never match at all.
    """
    return isinstance(annotation, type) and type(value) is annotation
