"""Canonical malformed-input matrix for probe/fetch entrypoints.

Every scenario is described against an abstract object: a valid handle, a
reference kind with a known fixed size (the owning-context kind for
queues) and a kind value outside the enumeration. The same six scenarios
therefore apply to any object type exposing the protocol.

Beyond the returned status each scenario checks that no output parameter
was written (buffers and the size cell are pre-filled with a sentinel) and
that the object's observable state did not change.
"""

from __future__ import annotations

import ctypes
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from getinfo_harness.engine.executor import QueryExecutor, byte_buffer
from getinfo_harness.engine.status import CaseFailure, InfoStatus, status_from_code, status_name

logger = logging.getLogger(__name__)

SENTINEL_BYTE = 0x5A
SENTINEL_SIZE = 0x5A5A5A5A

StateObserver = Callable[[], Mapping[str, Any]]


@dataclass(frozen=True)
class ScenarioInputs:
    handle: int
    reference_kind: int
    reference_size: int
    invalid_kind: int


@dataclass(frozen=True)
class CallShape:
    """Arguments for one raw call. `buffer_len=None` means a null buffer."""

    handle: Optional[int]
    kind: int
    size: int
    buffer_len: Optional[int]
    with_size_ret: bool


@dataclass(frozen=True)
class ErrorScenario:
    scenario_id: str
    description: str
    expected: InfoStatus
    build: Callable[[ScenarioInputs], CallShape]


def _null_handle(i: ScenarioInputs) -> CallShape:
    return CallShape(None, i.reference_kind, i.reference_size, i.reference_size, False)


def _invalid_enumeration(i: ScenarioInputs) -> CallShape:
    return CallShape(i.handle, i.invalid_kind, i.reference_size, i.reference_size, False)


def _size_zero(i: ScenarioInputs) -> CallShape:
    return CallShape(i.handle, i.reference_kind, 0, i.reference_size, False)


def _size_small(i: ScenarioInputs) -> CallShape:
    return CallShape(i.handle, i.reference_kind, i.reference_size - 1, i.reference_size, False)


def _null_value(i: ScenarioInputs) -> CallShape:
    return CallShape(i.handle, i.reference_kind, i.reference_size, None, False)


def _null_value_and_size_ret(i: ScenarioInputs) -> CallShape:
    return CallShape(i.handle, i.reference_kind, 0, None, False)


ERROR_SCENARIOS: Tuple[ErrorScenario, ...] = (
    ErrorScenario(
        "InvalidNullHandle",
        "primary handle is null",
        InfoStatus.INVALID_NULL_HANDLE,
        _null_handle,
    ),
    ErrorScenario(
        "InvalidEnumerationProperty",
        "kind value outside the recognized enumeration",
        InfoStatus.INVALID_ENUMERATION,
        _invalid_enumeration,
    ),
    ErrorScenario(
        "InvalidSizeZero",
        "requested size is 0 with a non-null output buffer",
        InfoStatus.INVALID_SIZE,
        _size_zero,
    ),
    ErrorScenario(
        "InvalidSizeSmall",
        "requested size is smaller than the kind requires",
        InfoStatus.INVALID_SIZE,
        _size_small,
    ),
    ErrorScenario(
        "InvalidNullPointerPropValue",
        "output buffer is null while requested size > 0",
        InfoStatus.INVALID_NULL_POINTER,
        _null_value,
    ),
    ErrorScenario(
        "InvalidNullPointerPropSizeRet",
        "both output buffer and size-out pointer are null",
        InfoStatus.INVALID_NULL_POINTER,
        _null_value_and_size_ret,
    ),
)


def scenario_by_id(scenario_id: str) -> ErrorScenario:
    for scenario in ERROR_SCENARIOS:
        if scenario.scenario_id == scenario_id:
            return scenario
    raise KeyError(f"unknown error scenario: {scenario_id}")


def run_error_scenario(
    executor: QueryExecutor,
    scenario: ErrorScenario,
    inputs: ScenarioInputs,
    *,
    observe_state: Optional[StateObserver] = None,
) -> Dict[str, Any]:
    """Run one scenario; raise `CaseFailure` on any contract breach.

    Returns a small record of what was observed for reporting.
    """

    shape = scenario.build(inputs)
    buffer = None
    if shape.buffer_len is not None:
        buffer = byte_buffer(shape.buffer_len, fill=SENTINEL_BYTE)
    size_ret = ctypes.c_size_t(SENTINEL_SIZE) if shape.with_size_ret else None

    before = dict(observe_state()) if observe_state is not None else None

    try:
        code = executor.call(shape.handle, shape.kind, shape.size, buffer, size_ret)
    except Exception as exc:
        raise CaseFailure(
            f"{scenario.scenario_id}: entrypoint raised instead of returning a status",
            expected=scenario.expected.name,
            actual=f"{type(exc).__name__}: {exc}",
        ) from exc

    status = status_from_code(code)
    if status != scenario.expected:
        raise CaseFailure(
            f"{scenario.scenario_id}: wrong status ({scenario.description})",
            expected=scenario.expected.name,
            actual=status_name(status),
        )

    if buffer is not None and any(b != SENTINEL_BYTE for b in bytes(buffer)):
        raise CaseFailure(
            f"{scenario.scenario_id}: output buffer was written on error",
            expected="buffer untouched",
            actual=bytes(buffer).hex(),
        )
    if size_ret is not None and size_ret.value != SENTINEL_SIZE:
        raise CaseFailure(
            f"{scenario.scenario_id}: size-out cell was written on error",
            expected=SENTINEL_SIZE,
            actual=int(size_ret.value),
        )

    if observe_state is not None:
        after = dict(observe_state())
        if after != before:
            raise CaseFailure(
                f"{scenario.scenario_id}: object state changed",
                expected=before,
                actual=after,
            )

    logger.debug("error scenario %s returned %s as required", scenario.scenario_id, status_name(status))
    return {"scenario_id": scenario.scenario_id, "status": status_name(status)}
