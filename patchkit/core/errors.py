"""Structural errors raised when a patch target has the wrong shape."""
from __future__ import annotations


class PatchError(Exception):
    """Base class for errors raised by the patch engine."""


class InvalidTargetKind(PatchError, TypeError):
    """The target cannot be introspected as a mutable record."""

    def __init__(self, target: object, message: str) -> None:
        super().__init__(message)
        self.target = target


class TargetNotReference(InvalidTargetKind):
    """Raised for ``None`` or a class object passed instead of an instance."""

    def __init__(self, target: object) -> None:
        super().__init__(target, "Destination must be a record instance")


class TargetNotAggregate(InvalidTargetKind):
    """Raised when the target is an instance but not a dataclass or model."""

    def __init__(self, target: object) -> None:
        super().__init__(
            target,
            f"Destination must be a dataclass or pydantic model, got {type(target).__name__}",
        )
