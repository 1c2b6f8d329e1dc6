from __future__ import annotations

import re
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

CASE_RESULT_PASS = "PASS"
CASE_RESULT_FAIL = "FAIL"
CASE_RESULT_SKIP = "SKIP"

ALLOWED_CASE_RESULTS = {CASE_RESULT_PASS, CASE_RESULT_FAIL, CASE_RESULT_SKIP}

_CASE_ID_RE = re.compile(r"^[A-Za-z0-9_.\-]+/[A-Za-z0-9_.\-]+$")


@dataclass(frozen=True)
class CaseOutcome:
    """Result of one parameterized case, handed to the runner/reporter."""

    case_id: str
    result: str
    expected: Any = None
    actual: Any = None
    reason: Optional[str] = None
    note: Optional[str] = None
    queries: int = 0

    @classmethod
    def passed(cls, case_id: str, *, queries: int, note: Optional[str] = None) -> "CaseOutcome":
        return cls(case_id=case_id, result=CASE_RESULT_PASS, note=note, queries=queries)

    @classmethod
    def failed(
        cls,
        case_id: str,
        *,
        expected: Any,
        actual: Any,
        reason: str,
        queries: int,
    ) -> "CaseOutcome":
        return cls(
            case_id=case_id,
            result=CASE_RESULT_FAIL,
            expected=expected,
            actual=actual,
            reason=reason,
            queries=queries,
        )

    @classmethod
    def skipped(cls, case_id: str, *, reason: str, queries: int = 0) -> "CaseOutcome":
        return cls(case_id=case_id, result=CASE_RESULT_SKIP, reason=reason, queries=queries)

    @property
    def suite_id(self) -> str:
        return self.case_id.split("/", 1)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "case_id": self.case_id,
            "result": self.result,
            "expected": _jsonable(self.expected),
            "actual": _jsonable(self.actual),
            "reason": self.reason,
            "note": self.note,
            "queries": int(self.queries),
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.name
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).hex()
    if isinstance(value, MappingABC):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return repr(value)


def case_outcome_errors(outcome: MappingABC[str, Any]) -> List[str]:
    errors: List[str] = []

    case_id = outcome.get("case_id")
    if not isinstance(case_id, str) or _CASE_ID_RE.match(case_id) is None:
        errors.append("case_id must look like '<suite>/<instance>'")

    result = outcome.get("result")
    if result not in ALLOWED_CASE_RESULTS:
        errors.append(f"result must be one of {sorted(ALLOWED_CASE_RESULTS)}")

    reason = outcome.get("reason")
    if result in {CASE_RESULT_FAIL, CASE_RESULT_SKIP}:
        if not isinstance(reason, str) or not reason.strip():
            errors.append(f"reason is required for result={result}")

    queries = outcome.get("queries")
    if not isinstance(queries, int) or queries < 0:
        errors.append("queries must be an int >= 0")
    elif result == CASE_RESULT_SKIP and queries != 0:
        errors.append("a skipped case must not issue queries")

    return errors


def assert_case_outcome(outcome: MappingABC[str, Any]) -> None:
    errors = case_outcome_errors(outcome)
    if errors:
        raise ValueError("CaseOutcome contract violation: " + "; ".join(errors))
