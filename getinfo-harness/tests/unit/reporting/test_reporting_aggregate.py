from __future__ import annotations

import json
from pathlib import Path

import pytest

from getinfo_harness.engine.outcome import CaseOutcome
from getinfo_harness.engine.status import InfoStatus
from getinfo_harness.reporting.aggregate import (
    SUITE_MANIFEST_JSON,
    SUITE_RESULTS_JSON,
    build_report,
    count_results,
    format_outcome_line,
    overall_rc,
    write_results,
)


def _outcomes() -> list:
    return [
        CaseOutcome.passed("queue_info/gpu__CONTEXT", queries=2),
        CaseOutcome.passed("queue_info/gpu__SIZE", queries=1, note="unsupported enumeration"),
        CaseOutcome.skipped("device_queue_info/gpu__SIZE", reason="missing QUEUE_ON_DEVICE_PROPERTIES"),
        CaseOutcome.failed(
            "queue_info_errors/gpu__InvalidSizeZero",
            expected=InfoStatus.INVALID_SIZE,
            actual=InfoStatus.SUCCESS,
            reason="InvalidSizeZero: wrong status",
            queries=1,
        ),
    ]


def test_counts_overall_and_per_suite() -> None:
    outcomes = _outcomes()
    assert count_results(outcomes) == {"PASS": 2, "FAIL": 1, "SKIP": 1}

    report = build_report(outcomes, profile_id="queue_getinfo")
    assert report["total"] == 4
    assert report["per_suite"]["queue_info"] == {"PASS": 2, "FAIL": 0, "SKIP": 0}
    assert report["per_suite"]["device_queue_info"] == {"PASS": 0, "FAIL": 0, "SKIP": 1}
    assert report["per_suite"]["queue_info_errors"] == {"PASS": 0, "FAIL": 1, "SKIP": 0}
    assert report["cases"][3]["expected"] == "INVALID_SIZE"


def test_overall_rc() -> None:
    outcomes = _outcomes()
    assert overall_rc(outcomes) == 2
    assert overall_rc(outcomes[:3]) == 0
    assert overall_rc([]) == 0


def test_report_rejects_invalid_outcomes() -> None:
    bad = CaseOutcome.skipped("device_queue_info/gpu__SIZE", reason="gated", queries=3)
    with pytest.raises(ValueError, match="must not issue queries"):
        build_report([bad], profile_id="p")


def test_write_results_emits_canonical_json(tmp_path: Path) -> None:
    out_dir = tmp_path / "run"
    report = write_results(
        out_dir,
        _outcomes(),
        profile_id="queue_getinfo",
        manifest={"profile_id": "queue_getinfo", "backend": "sim"},
    )

    results_text = (out_dir / SUITE_RESULTS_JSON).read_text(encoding="utf-8")
    assert json.loads(results_text) == report
    assert results_text.startswith('{"cases":[')
    assert results_text.endswith("\n")

    manifest = json.loads((out_dir / SUITE_MANIFEST_JSON).read_text(encoding="utf-8"))
    assert manifest == {"backend": "sim", "profile_id": "queue_getinfo"}


def test_format_outcome_line() -> None:
    passed, unsupported, skipped, failed = _outcomes()
    assert format_outcome_line(passed) == "PASS\tqueue_info/gpu__CONTEXT"
    assert format_outcome_line(unsupported) == "PASS\tqueue_info/gpu__SIZE\t(unsupported enumeration)"
    assert format_outcome_line(skipped).startswith("SKIP\tdevice_queue_info/gpu__SIZE\tmissing")
    assert format_outcome_line(failed) == (
        "FAIL\tqueue_info_errors/gpu__InvalidSizeZero\tInvalidSizeZero: wrong status"
        " (expected='INVALID_SIZE', actual='SUCCESS')"
    )
