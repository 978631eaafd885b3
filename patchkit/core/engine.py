"""Partial update engine applying a sparse map of values onto a record."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

import structlog

from patchkit.core.coerce import COERCIONS, Coercion, FieldSlot, attempt_coercions
from patchkit.core.errors import InvalidTargetKind
from patchkit.core.introspect import FieldDescriptor, describe_fields
from patchkit.core.kinds import is_direct_match, value_kind
from patchkit.core.skip import SKIP_CONDITIONS, SkipCondition, should_skip
from patchkit.observability.metrics import MetricsRegistry

LOGGER = structlog.get_logger(__name__)


@dataclass
class PatchReport:
    """Outcome of one merge call.

    ``updated`` is authoritative and lists assigned fields in declaration
    order. ``failed`` holds fields whose value was supplied but could not be
    converted, ``skipped`` fields whose value was supplied but which are
    immutable or excluded by a skip condition. ``ignored_keys`` are map keys
    no field declares.
    """

    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    ignored_keys: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.updated)


class PatchEngine:
    """Applies partial maps onto dataclass or pydantic records."""

    def __init__(
        self,
        *,
        tag_name: str = "json",
        skip_conditions: Optional[Sequence[SkipCondition]] = None,
        coercions: Optional[Sequence[Coercion]] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.tag_name = tag_name
        self.skip_conditions = list(SKIP_CONDITIONS if skip_conditions is None else skip_conditions)
        self.coercions = list(COERCIONS if coercions is None else coercions)
        self._metrics = metrics

    def apply(self, target: object, partial: Mapping[str, Any]) -> PatchReport:
        """Update the fields of ``target`` named by ``partial``.

        Raises ``InvalidTargetKind`` before touching anything when the target
        is not a record instance. Per-field conversion failures are logged and
        never raised.
        """
        try:
            fields = describe_fields(target, self.tag_name)
        except InvalidTargetKind:
            if self._metrics is not None:
                self._metrics.record_structural_error()
            raise
        report = PatchReport()
        for descriptor in fields:
            supplied = bool(descriptor.key) and descriptor.key in partial
            if not descriptor.mutable or should_skip(descriptor, self.skip_conditions):
                if supplied:
                    report.skipped.append(descriptor.name)
                continue
            if not supplied:
                continue
            raw = partial[descriptor.key]
            if self._assign(target, descriptor, raw):
                report.updated.append(descriptor.name)
            else:
                report.failed.append(descriptor.name)

        declared = {descriptor.key for descriptor in fields if descriptor.key}
        report.ignored_keys = [key for key in partial if key not in declared]

        if self._metrics is not None:
            self._metrics.record_report(type(target).__name__, report)
        return report

    def _assign(self, target: object, descriptor: FieldDescriptor, raw: Any) -> bool:
        slot = FieldSlot(target, descriptor)
        error: Optional[str] = None
        try:
            if is_direct_match(raw, descriptor.annotation):
                slot.assign(raw)
                return True
            if attempt_coercions(slot, raw, self.coercions):
                return True
        except Exception as exc:
            # validating setters and caller-supplied coercions; a field failure never aborts the merge
            error = f"{type(exc).__name__}: {exc}"
        record = descriptor.owner.__name__
        if raw is None:
            LOGGER.warning("patch_field_rejected_null", record=record, field=descriptor.name, error=error)
        else:
            LOGGER.warning(
                "patch_field_rejected",
                record=record,
                field=descriptor.name,
                value=raw,
                kind=value_kind(raw).value,
                error=error,
            )
        return False


def partial_update(
    target: object,
    partial: Mapping[str, Any],
    tag_name: str = "json",
    skip_conditions: Optional[Sequence[SkipCondition]] = None,
    coercions: Optional[Sequence[Coercion]] = None,
) -> List[str]:
    """Patch ``target`` from ``partial`` and return the updated field names."""
    engine = PatchEngine(tag_name=tag_name, skip_conditions=skip_conditions, coercions=coercions)
    return engine.apply(target, partial).updated
