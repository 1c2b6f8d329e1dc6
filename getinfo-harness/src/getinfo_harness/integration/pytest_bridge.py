"""Report case outcomes through pytest.

A test module can parametrize over a profile's cases and let each case's
outcome become a pytest pass, fail or skip:

    CASES = build_cases(load_profile(), SimRuntime())

    @pytest.mark.parametrize("case", case_params(CASES))
    def test_case(case):
        assert_outcome(case.run())
"""

from __future__ import annotations

from typing import Any, List, Sequence

import pytest

from getinfo_harness.engine.cases import ParameterizedCase
from getinfo_harness.engine.outcome import CASE_RESULT_FAIL, CASE_RESULT_SKIP, CaseOutcome


def assert_outcome(outcome: CaseOutcome) -> None:
    if outcome.result == CASE_RESULT_SKIP:
        pytest.skip(outcome.reason or "skipped")
    if outcome.result == CASE_RESULT_FAIL:
        record = outcome.to_dict()
        pytest.fail(
            f"{outcome.case_id}: {outcome.reason}\n"
            f"  expected: {record['expected']!r}\n"
            f"    actual: {record['actual']!r}",
            pytrace=False,
        )


def case_params(cases: Sequence[ParameterizedCase]) -> List[Any]:
    return [pytest.param(case, id=case.case_id) for case in cases]
