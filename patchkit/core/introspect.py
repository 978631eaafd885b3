"""Enumerate the patchable fields of a record instance."""
from __future__ import annotations

import dataclasses
import functools
import typing
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel

from patchkit.core.errors import TargetNotAggregate, TargetNotReference


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """Per-field metadata computed from the record class."""

    name: str
    key: str
    annotation: Any
    mutable: bool
    owner: type
    tags: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def tag(self, name: str) -> str:
        """Return the raw value of the named tag, or an empty string."""
        value = self.tags.get(name)
        return value if isinstance(value, str) else ""


def resolve_target(target: object) -> type:
    """Return the record class of ``target`` or raise a structural error."""
    if target is None or isinstance(target, type):
        raise TargetNotReference(target)
    if isinstance(target, BaseModel) or dataclasses.is_dataclass(target):
        return type(target)
    raise TargetNotAggregate(target)


def describe_fields(target: object, tag_name: str) -> Tuple[FieldDescriptor, ...]:
    """List the target's fields in declaration order."""
    return _describe_class(resolve_target(target), tag_name)


def describe_type(cls: type, tag_name: str) -> Tuple[FieldDescriptor, ...]:
    """List the fields of a record class without needing an instance."""
    if not isinstance(cls, type) or not (issubclass(cls, BaseModel) or dataclasses.is_dataclass(cls)):
        raise TargetNotAggregate(cls)
    return _describe_class(cls, tag_name)


@functools.lru_cache(maxsize=256)
def _describe_class(cls: type, tag_name: str) -> Tuple[FieldDescriptor, ...]:
    if issubclass(cls, BaseModel):
        return tuple(_describe_model(cls, tag_name))
    return tuple(_describe_dataclass(cls, tag_name))


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # unresolvable forward reference; fall back to the raw annotations
        return {}


def _describe_dataclass(cls: type, tag_name: str):
    hints = _type_hints(cls)
    frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
    for item in dataclasses.fields(cls):
        tags = MappingProxyType(dict(item.metadata))
        yield FieldDescriptor(
            name=item.name,
            key=_lookup_key(tags, tag_name),
            annotation=hints.get(item.name, item.type),
            mutable=not frozen and not item.name.startswith("_"),
            owner=cls,
            tags=tags,
        )


def _describe_model(cls: type, tag_name: str):
    model_frozen = bool(cls.model_config.get("frozen", False))
    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        tags = MappingProxyType(dict(extra))
        yield FieldDescriptor(
            name=name,
            key=_lookup_key(tags, tag_name),
            annotation=info.annotation,
            mutable=not model_frozen and not info.frozen and not name.startswith("_"),
            owner=cls,
            tags=tags,
        )
    # PrivateAttr members follow the declared fields; they carry no tags
    hints = _type_hints(cls)
    for name in cls.__private_attributes__:
        yield FieldDescriptor(
            name=name,
            key="",
            annotation=hints.get(name, Any),
            mutable=False,
            owner=cls,
            tags=MappingProxyType({}),
        )


def _lookup_key(tags: Mapping[str, Any], tag_name: str) -> str:
    value = tags.get(tag_name)
    return value if isinstance(value, str) else ""
