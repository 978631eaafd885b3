import orjson

from patchkit.core.engine import PatchReport
from patchkit.observability.metrics import PATCH_COUNTERS, MetricsRegistry


def test_fresh_registry_has_every_counter():
    metrics = MetricsRegistry()
    assert metrics.snapshot() == {name: 0 for name in PATCH_COUNTERS}
    assert metrics.get("unknown") == 0


def test_record_report_tallies_outcomes():
    metrics = MetricsRegistry()
    metrics.record_report("Order", PatchReport(updated=["a", "b"], failed=["c"], skipped=["d"], ignored_keys=["x"]))
    metrics.record_report("Order", PatchReport(failed=["c"]))
    metrics.record_structural_error()
    assert metrics.get("merges") == 2
    assert metrics.get("fields_updated") == 2
    assert metrics.get("fields_failed") == 2
    assert metrics.get("fields_skipped") == 1
    assert metrics.get("keys_ignored") == 1
    assert metrics.get("structural_errors") == 1
    assert metrics.failures_for("Order", "c") == 2
    assert metrics.failures_for("Order", "a") == 0


def test_export(tmp_path):
    metrics = MetricsRegistry()
    metrics.record_report("Order", PatchReport(updated=["a"], failed=["c"]))

    target = metrics.export(path=tmp_path / "metrics" / "run.json", run_id="run-1")
    payload = orjson.loads(target.read_bytes())
    assert payload["run_id"] == "run-1"
    assert payload["counters"]["merges"] == 1
    assert payload["counters"]["fields_updated"] == 1
    assert payload["failed_fields"] == {"Order.c": 1}
    assert payload["generated_at"].endswith("Z")
