"""Expand a suite profile into cases and run them.

Every suite is instantiated once per enumerated device. Kind suites yield
one case per kind; error-matrix suites yield one case per scenario. Case ids
read `<suite_id>/<device>__<KIND or scenario>`.
"""

from __future__ import annotations

import logging
from collections import Counter
from functools import partial
from typing import Dict, List, Optional, Sequence

from getinfo_harness.engine.capability import (
    CapabilityGate,
    CapabilityRequirement,
    device_capability_query,
)
from getinfo_harness.engine.cases import (
    CaseEnvironment,
    ErrorScenarioCase,
    ParameterizedCase,
    expand_kind_cases,
)
from getinfo_harness.engine.error_matrix import ERROR_SCENARIOS
from getinfo_harness.engine.executor import QueryExecutor
from getinfo_harness.engine.fixtures import FixtureScope
from getinfo_harness.engine.outcome import CaseOutcome
from getinfo_harness.runtime.collaborator import DeviceRef, QueueRuntime
from getinfo_harness.spec.profile_loader import SuiteConfig, SuiteProfile
from getinfo_harness.targets.base import InfoTarget

logger = logging.getLogger(__name__)


def _instance_names(devices: Sequence[DeviceRef]) -> Dict[int, str]:
    counts = Counter(d.instance_name for d in devices)
    out: Dict[int, str] = {}
    for d in devices:
        name = d.instance_name
        if counts[name] > 1:
            name = f"{name}_{d.handle:x}"
        out[d.handle] = name
    return out


def _make_executor(target: InfoTarget, runtime: QueueRuntime) -> QueryExecutor:
    return QueryExecutor(target.entrypoint(runtime))


def _make_scope(target: InfoTarget, runtime: QueueRuntime, device: DeviceRef, flags: int) -> FixtureScope:
    return FixtureScope(target.fixture_builder(runtime, device, flags), label=device.name)


def _make_gate(
    target: InfoTarget,
    runtime: QueueRuntime,
    requirement: Optional[CapabilityRequirement],
) -> Optional[CapabilityGate]:
    if requirement is None:
        return None
    device_executor = QueryExecutor(target.device_entrypoint(runtime))
    return CapabilityGate(requirement, device_capability_query(device_executor, requirement.info_kind))


def _suite_cases(
    suite: SuiteConfig,
    target: InfoTarget,
    runtime: QueueRuntime,
    device: DeviceRef,
    instance: str,
) -> List[ParameterizedCase]:
    env = CaseEnvironment(
        executor_factory=partial(_make_executor, target, runtime),
        scope_factory=partial(_make_scope, target, runtime, device, suite.flags),
        device=device.handle,
        gate=_make_gate(target, runtime, suite.capability),
    )
    cases: List[ParameterizedCase] = []
    if suite.kinds:
        cases.extend(
            expand_kind_cases(
                suite_id=suite.suite_id,
                instance=instance,
                env=env,
                kinds=suite.kinds,
                sizes=target.sizes,
                values=target.values,
                validate_values=suite.validate_values,
            )
        )
    if suite.error_matrix:
        for scenario in ERROR_SCENARIOS:
            cases.append(
                ErrorScenarioCase(
                    case_id=f"{suite.suite_id}/{instance}__{scenario.scenario_id}",
                    env=env,
                    scenario=scenario,
                    reference_kind=target.matrix_reference_kind,
                    sizes=target.sizes,
                    invalid_kind=target.invalid_kind,
                    state_kinds=target.state_kinds,
                )
            )
    return cases


def build_cases(
    profile: SuiteProfile,
    runtime: QueueRuntime,
    *,
    suite_ids: Optional[Sequence[str]] = None,
) -> List[ParameterizedCase]:
    """Instantiate every selected suite for every device, in profile order."""

    wanted = set(suite_ids) if suite_ids else None
    if wanted is not None:
        unknown = sorted(wanted - {s.suite_id for s in profile.suites})
        if unknown:
            raise KeyError(f"unknown suite id(s): {unknown}")

    devices = list(runtime.devices())
    if not devices:
        raise RuntimeError("runtime reported no devices")
    names = _instance_names(devices)

    cases: List[ParameterizedCase] = []
    for suite in profile.suites:
        if wanted is not None and suite.suite_id not in wanted:
            continue
        for device in devices:
            cases.extend(_suite_cases(suite, profile.target, runtime, device, names[device.handle]))
    return cases


def run_profile(
    profile: SuiteProfile,
    runtime: QueueRuntime,
    *,
    suite_ids: Optional[Sequence[str]] = None,
) -> List[CaseOutcome]:
    cases = build_cases(profile, runtime, suite_ids=suite_ids)
    logger.info("running %d case(s) from profile %s", len(cases), profile.profile_id)
    outcomes = []
    for case in cases:
        outcome = case.run()
        logger.debug("%s -> %s", outcome.case_id, outcome.result)
        outcomes.append(outcome)
    return outcomes
