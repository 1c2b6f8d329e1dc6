from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from getinfo_harness.engine.outcome import (
    CASE_RESULT_FAIL,
    CASE_RESULT_PASS,
    CASE_RESULT_SKIP,
    CaseOutcome,
    assert_case_outcome,
)

SUITE_MANIFEST_JSON = "suite_manifest.json"
SUITE_RESULTS_JSON = "suite_results.json"


def _json_dumps_canonical(obj: Any) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _new_counts() -> Dict[str, int]:
    return {CASE_RESULT_PASS: 0, CASE_RESULT_FAIL: 0, CASE_RESULT_SKIP: 0}


def count_results(outcomes: Sequence[CaseOutcome]) -> Dict[str, int]:
    counts = _new_counts()
    for outcome in outcomes:
        counts[outcome.result] = counts.get(outcome.result, 0) + 1
    return counts


def build_report(outcomes: Sequence[CaseOutcome], *, profile_id: str) -> Dict[str, Any]:
    """Overall and per-suite counts plus the validated case records."""

    per_suite: Dict[str, Dict[str, int]] = {}
    cases = []
    for outcome in outcomes:
        record = outcome.to_dict()
        assert_case_outcome(record)
        cases.append(record)
        bucket = per_suite.setdefault(outcome.suite_id, _new_counts())
        bucket[outcome.result] += 1

    return {
        "profile_id": profile_id,
        "total": len(outcomes),
        "counts": count_results(outcomes),
        "per_suite": per_suite,
        "cases": cases,
    }


def overall_rc(outcomes: Sequence[CaseOutcome]) -> int:
    return 2 if any(o.result == CASE_RESULT_FAIL for o in outcomes) else 0


def write_results(
    output_dir: Path,
    outcomes: Sequence[CaseOutcome],
    *,
    profile_id: str,
    manifest: Mapping[str, Any],
) -> Dict[str, Any]:
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / SUITE_MANIFEST_JSON).write_text(
        _json_dumps_canonical(dict(manifest)) + "\n",
        encoding="utf-8",
    )
    report = build_report(outcomes, profile_id=profile_id)
    (output_dir / SUITE_RESULTS_JSON).write_text(
        _json_dumps_canonical(report) + "\n",
        encoding="utf-8",
    )
    return report


def format_outcome_line(outcome: CaseOutcome) -> str:
    if outcome.result == CASE_RESULT_FAIL:
        record = outcome.to_dict()
        return (
            f"{outcome.result}\t{outcome.case_id}\t{outcome.reason}"
            f" (expected={record['expected']!r}, actual={record['actual']!r})"
        )
    if outcome.result == CASE_RESULT_SKIP:
        return f"{outcome.result}\t{outcome.case_id}\t{outcome.reason}"
    if outcome.note:
        return f"{outcome.result}\t{outcome.case_id}\t({outcome.note})"
    return f"{outcome.result}\t{outcome.case_id}"
