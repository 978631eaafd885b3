"""Coercion dispatch for raw values whose type differs from the field's."""
from __future__ import annotations

from typing import Any, Callable, Iterable, List

from patchkit.core.introspect import FieldDescriptor


class FieldSlot:
    """Writable handle on one field of one record, handed to coercions."""

    __slots__ = ("record", "descriptor")

    def __init__(self, record: object, descriptor: FieldDescriptor) -> None:
        self.record = record
        self.descriptor = descriptor

    @property
    def annotation(self) -> Any:
        return self.descriptor.annotation

    @property
    def current(self) -> Any:
        """Value currently held by the field."""
        return getattr(self.record, self.descriptor.name)

    def assign(self, value: Any) -> None:
        setattr(self.record, self.descriptor.name, value)

    def __repr__(self) -> str:
        return f"FieldSlot({self.descriptor.owner.__name__}.{self.descriptor.name})"


Coercion = Callable[[FieldSlot, Any], bool]


def attempt_coercions(slot: FieldSlot, raw: Any, coercions: Iterable[Coercion]) -> bool:
    """Try each coercion in order; the first one reporting success wins.

    A successful coercion has already assigned the converted value through
    ``slot.assign``.
    """
    for coercion in coercions:
        if coercion(slot, raw):
            return True
    return False


COERCIONS: List[Coercion] = []
