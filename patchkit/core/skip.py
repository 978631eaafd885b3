"""Skip conditions deciding which fields are never patched."""
from __future__ import annotations

from typing import Callable, Iterable, List

from patchkit.core.introspect import FieldDescriptor

SkipCondition = Callable[[FieldDescriptor], bool]


def read_only_predicate(tag: str = "props", token: str = "readonly") -> SkipCondition:
    """Build a condition matching fields whose ``tag`` lists ``token``.

    Tokens are split on ``,`` and compared verbatim: no whitespace trimming,
    case-sensitive.
    """

    def _skip(field: FieldDescriptor) -> bool:
        return token in field.tag(tag).split(",")

    _skip.__name__ = f"skip_{token}"
    return _skip


# fields tagged props="readonly"
skip_read_only = read_only_predicate()
skip_read_only.__name__ = "skip_read_only"


def should_skip(field: FieldDescriptor, conditions: Iterable[SkipCondition]) -> bool:
    """Return True as soon as one condition matches."""
    return any(condition(field) for condition in conditions)


SKIP_CONDITIONS: List[SkipCondition] = [skip_read_only]
