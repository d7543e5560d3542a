import logging

import pytest

from coldstore.utils import get_logger
from coldstore.utils.performance import SLOW_CALL_ENV, CallTracker, resolve_slow_call_ms


def test_call_tracker_records_summary():
    tracker = CallTracker(get_logger("tests.performance"))
    tracker.record("bulk_upsert", 2.0, documents=3)
    tracker.record("bulk_upsert", 4.0, documents=1, failed=True)
    tracker.record("fetch_one", 1.0)

    summary = {entry["operation"]: entry for entry in tracker.summary()}
    assert summary["bulk_upsert"]["count"] == 2
    assert summary["bulk_upsert"]["documents"] == 4
    assert summary["bulk_upsert"]["failures"] == 1
    assert summary["bulk_upsert"]["average_ms"] == pytest.approx(3.0)
    assert summary["fetch_one"]["count"] == 1


def test_lazy_fetches_emit_single_n_plus_one_warning(caplog):
    caplog.set_level(logging.WARNING, logger="coldstore.tests.performance")
    tracker = CallTracker(get_logger("tests.performance"), n_plus_one_threshold=3)
    for _ in range(5):
        tracker.record_lazy_fetch("Author")

    warnings = [rec for rec in caplog.records if "Potential N+1 detected" in rec.message]
    assert len(warnings) == 1
    assert "'Author'" in warnings[0].message


def test_call_tracker_reset():
    tracker = CallTracker(get_logger("tests.performance"), n_plus_one_threshold=2)
    tracker.record("fetch_one", 0.5)
    tracker.reset()
    assert tracker.summary() == []


def test_resolve_slow_call_ms_precedence(monkeypatch):
    monkeypatch.delenv(SLOW_CALL_ENV, raising=False)
    assert resolve_slow_call_ms(default=150) == 150
    monkeypatch.setenv(SLOW_CALL_ENV, "25")
    assert resolve_slow_call_ms(default=150) == 25
    assert resolve_slow_call_ms(default=150, override=5) == 5
    monkeypatch.setenv(SLOW_CALL_ENV, "fast")
    with pytest.raises(ValueError):
        resolve_slow_call_ms()
