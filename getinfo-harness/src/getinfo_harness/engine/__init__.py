"""Generic conformance engine for probe/fetch info entrypoints.

- sizes: fixed-size expectations per kind
- executor: the two-phase probe/fetch protocol
- values: per-kind decode table and predicates
- capability: capability gates for specialized fixtures
- error_matrix: canonical malformed-input scenarios
- cases: parameterized cases producing Pass/Fail/Skip outcomes
"""

from __future__ import annotations

from getinfo_harness.engine.capability import (
    CapabilityGate,
    CapabilityRequirement,
    GateDecision,
    device_capability_query,
)
from getinfo_harness.engine.cases import (
    CaseEnvironment,
    ErrorScenarioCase,
    KindCase,
    ParameterizedCase,
    expand_kind_cases,
    run_cases,
)
from getinfo_harness.engine.error_matrix import (
    ERROR_SCENARIOS,
    ErrorScenario,
    ScenarioInputs,
    run_error_scenario,
)
from getinfo_harness.engine.executor import InfoEntrypoint, QueryExecutor
from getinfo_harness.engine.fixtures import (
    Fixture,
    FixtureScope,
    FixtureSetupError,
    FixtureState,
    FixtureTeardownError,
)
from getinfo_harness.engine.outcome import (
    ALLOWED_CASE_RESULTS,
    CaseOutcome,
    assert_case_outcome,
)
from getinfo_harness.engine.sizes import InfoSizeRegistry
from getinfo_harness.engine.status import (
    CaseFailure,
    CaseSkipped,
    InfoQueryError,
    InfoStatus,
    ProtocolViolation,
)
from getinfo_harness.engine.values import ValueRule, ValueValidator

__all__ = [
    "ALLOWED_CASE_RESULTS",
    "ERROR_SCENARIOS",
    "CapabilityGate",
    "CapabilityRequirement",
    "CaseEnvironment",
    "CaseFailure",
    "CaseOutcome",
    "CaseSkipped",
    "ErrorScenario",
    "ErrorScenarioCase",
    "Fixture",
    "FixtureScope",
    "FixtureSetupError",
    "FixtureState",
    "FixtureTeardownError",
    "GateDecision",
    "InfoEntrypoint",
    "InfoQueryError",
    "InfoSizeRegistry",
    "InfoStatus",
    "KindCase",
    "ParameterizedCase",
    "ProtocolViolation",
    "QueryExecutor",
    "ScenarioInputs",
    "ValueRule",
    "ValueValidator",
    "assert_case_outcome",
    "device_capability_query",
    "expand_kind_cases",
    "run_cases",
    "run_error_scenario",
]
