from __future__ import annotations

import json
from pathlib import Path

import pytest

from getinfo_harness.examples.sim_runtime import SimRuntime
from getinfo_harness.integration.pytest_bridge import assert_outcome, case_params
from getinfo_harness.reporting.aggregate import overall_rc, write_results
from getinfo_harness.runtime.suite_runner import build_cases, run_profile
from getinfo_harness.spec.profile_loader import load_profile

_CAPABLE = SimRuntime(device_count=2, on_device_queues=True)
_CASES = build_cases(load_profile(), _CAPABLE)


@pytest.mark.parametrize("case", case_params(_CASES))
def test_default_profile_case(case) -> None:  # type: ignore[no-untyped-def]
    assert_outcome(case.run())


def test_capable_runtime_is_clean_after_all_cases() -> None:
    for case in _CASES:
        case.run()
    assert _CAPABLE.live_handles() == 0


def test_incapable_runtime_skips_only_the_gated_suite(tmp_path: Path) -> None:
    sim = SimRuntime(device_count=2, on_device_queues=False)
    profile = load_profile()
    outcomes = run_profile(profile, sim)

    skipped = {o.case_id for o in outcomes if o.result == "SKIP"}
    assert skipped == {o.case_id for o in outcomes if o.suite_id == "device_queue_info"}
    assert len(skipped) == 2 * 7
    assert overall_rc(outcomes) == 0

    report = write_results(tmp_path, outcomes, profile_id=profile.profile_id, manifest={"backend": "sim"})
    assert report["counts"] == {"PASS": 2 * (5 + 6), "FAIL": 0, "SKIP": 14}
    on_disk = json.loads((tmp_path / "suite_results.json").read_text(encoding="utf-8"))
    assert on_disk["total"] == 36
    assert sim.live_handles() == 0
