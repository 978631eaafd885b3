"""Per-process tallies of patch outcomes, exportable as JSON."""
from __future__ import annotations

import time
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Tuple

import orjson

if TYPE_CHECKING:
    from patchkit.core.engine import PatchReport

PATCH_COUNTERS: Tuple[str, ...] = (
    "merges",
    "structural_errors",
    "fields_updated",
    "fields_failed",
    "fields_skipped",
    "keys_ignored",
)


class MetricsRegistry:
    """Tallies merges and their per-field outcomes.

    Every name in ``PATCH_COUNTERS`` is present from the start so exports
    always carry the full set, even for a process that never merged.
    """

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter(dict.fromkeys(PATCH_COUNTERS, 0))
        self._by_field: Counter[Tuple[str, str]] = Counter()

    def record_report(self, record: str, report: "PatchReport") -> None:
        """Fold one merge outcome for a record class into the tallies."""
        self._counts["merges"] += 1
        outcomes = (
            ("fields_updated", report.updated),
            ("fields_failed", report.failed),
            ("fields_skipped", report.skipped),
        )
        for counter, names in outcomes:
            self._counts[counter] += len(names)
        self._counts["keys_ignored"] += len(report.ignored_keys)
        for name in report.failed:
            self._by_field[(record, name)] += 1

    def record_structural_error(self) -> None:
        self._counts["structural_errors"] += 1

    def get(self, name: str) -> int:
        return self._counts.get(name, 0)

    def failures_for(self, record: str, field: str) -> int:
        """How often ``record.field`` was supplied but could not be applied."""
        return self._by_field.get((record, field), 0)

    def snapshot(self) -> Dict[str, int]:
        return dict(self._counts)

    def export(self, *, path: Path, run_id: str) -> Path:
        """Write the tallies, including per-field failures, to ``path``."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "run_id": run_id,
            "counters": self.snapshot(),
            "failed_fields": {f"{record}.{field}": count for (record, field), count in sorted(self._by_field.items())},
            "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        }
        path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
        return path
