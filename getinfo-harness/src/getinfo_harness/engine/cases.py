"""Parameterized cases.

A case is one fixture instantiation: optional capability gate, fixture
setup, body, teardown. `KindCase` runs the probe/fetch/size/value checks for
one info kind; `ErrorScenarioCase` runs one row of the error matrix. Each
run yields a `CaseOutcome`; a failing case never aborts its neighbours.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Sequence

from getinfo_harness.engine.capability import CapabilityGate
from getinfo_harness.engine.error_matrix import (
    ErrorScenario,
    ScenarioInputs,
    StateObserver,
    run_error_scenario,
)
from getinfo_harness.engine.executor import QueryExecutor
from getinfo_harness.engine.fixtures import (
    Fixture,
    FixtureScope,
    FixtureSetupError,
    FixtureTeardownError,
)
from getinfo_harness.engine.outcome import CaseOutcome
from getinfo_harness.engine.sizes import InfoSizeRegistry
from getinfo_harness.engine.status import (
    CaseFailure,
    CaseSkipped,
    InfoQueryError,
    InfoStatus,
    status_name,
)
from getinfo_harness.engine.values import ValueValidator

logger = logging.getLogger(__name__)

NOTE_UNSUPPORTED = "unsupported enumeration"


@dataclass(frozen=True)
class CaseEnvironment:
    """Everything a case needs besides its own parameter."""

    executor_factory: Callable[[], QueryExecutor]
    scope_factory: Callable[[], FixtureScope]
    device: int
    gate: Optional[CapabilityGate] = None


class ParameterizedCase(ABC):
    def __init__(self, *, case_id: str, env: CaseEnvironment) -> None:
        self.case_id = case_id
        self.env = env

    def run(self) -> CaseOutcome:
        executor: Optional[QueryExecutor] = None
        try:
            if self.env.gate is not None:
                self.env.gate.enforce(self.env.device)
            executor = self.env.executor_factory()
            with self.env.scope_factory() as fixture:
                note = self.body(executor, fixture)
        except CaseSkipped as exc:
            return CaseOutcome.skipped(self.case_id, reason=exc.reason)
        except CaseFailure as exc:
            logger.warning("%s failed: %s", self.case_id, exc)
            return CaseOutcome.failed(
                self.case_id,
                expected=exc.expected,
                actual=exc.actual,
                reason=exc.message,
                queries=_calls(executor),
            )
        except InfoQueryError as exc:
            logger.warning("%s failed: %s", self.case_id, exc)
            return CaseOutcome.failed(
                self.case_id,
                expected=InfoStatus.SUCCESS.name,
                actual=status_name(exc.status),
                reason=str(exc),
                queries=_calls(executor),
            )
        except FixtureSetupError as exc:
            logger.warning("%s fixture setup failed: %s", self.case_id, exc)
            return CaseOutcome.failed(
                self.case_id,
                expected="fixture ready",
                actual=str(exc),
                reason="fixture setup failed",
                queries=_calls(executor),
            )
        except FixtureTeardownError as exc:
            logger.warning("%s fixture teardown failed: %s", self.case_id, exc)
            return CaseOutcome.failed(
                self.case_id,
                expected="fixture released",
                actual=str(exc),
                reason="fixture teardown failed",
                queries=_calls(executor),
            )
        except Exception as exc:
            logger.warning("%s: entrypoint raised %s: %s", self.case_id, type(exc).__name__, exc)
            return CaseOutcome.failed(
                self.case_id,
                expected=InfoStatus.SUCCESS.name,
                actual=f"{type(exc).__name__}: {exc}",
                reason="entrypoint raised",
                queries=_calls(executor),
            )
        return CaseOutcome.passed(self.case_id, queries=_calls(executor), note=note)

    @abstractmethod
    def body(self, executor: QueryExecutor, fixture: Fixture) -> Optional[str]:
        raise NotImplementedError


def _calls(executor: Optional[QueryExecutor]) -> int:
    return executor.calls if executor is not None else 0


class KindCase(ParameterizedCase):
    """Probe, cross-check size, fetch, then decode and assert one kind."""

    def __init__(
        self,
        *,
        case_id: str,
        env: CaseEnvironment,
        kind: IntEnum,
        sizes: InfoSizeRegistry,
        values: ValueValidator,
        validate_values: bool = True,
    ) -> None:
        super().__init__(case_id=case_id, env=env)
        self.kind = kind
        self.sizes = sizes
        self.values = values
        self.validate_values = validate_values

    def body(self, executor: QueryExecutor, fixture: Fixture) -> Optional[str]:
        try:
            size = executor.probe(fixture.primary, self.kind)
        except InfoQueryError as exc:
            if exc.unsupported:
                logger.info("%s: %s not supported by this object", self.case_id, self.kind.name)
                return NOTE_UNSUPPORTED
            raise

        expected = self.sizes.expected_size(self.kind)
        if expected is not None and size != expected:
            raise CaseFailure(
                f"probed size for {self.kind.name} does not match the registry",
                expected=expected,
                actual=size,
            )

        data = executor.fetch(fixture.primary, self.kind, size)
        if self.validate_values:
            self.values.validate(self.kind, data, fixture.references)
        return None


class ErrorScenarioCase(ParameterizedCase):
    def __init__(
        self,
        *,
        case_id: str,
        env: CaseEnvironment,
        scenario: ErrorScenario,
        reference_kind: IntEnum,
        sizes: InfoSizeRegistry,
        invalid_kind: int,
        state_kinds: Sequence[IntEnum] = (),
    ) -> None:
        super().__init__(case_id=case_id, env=env)
        self.scenario = scenario
        self.reference_kind = reference_kind
        self.invalid_kind = int(invalid_kind)
        self.state_kinds = tuple(state_kinds)
        reference_size = sizes.expected_size(reference_kind)
        if reference_size is None:
            raise ValueError(f"reference kind {reference_kind.name} needs a fixed size")
        self.reference_size = reference_size

    def _state_observer(self, executor: QueryExecutor, fixture: Fixture) -> Optional[StateObserver]:
        if not self.state_kinds:
            return None

        def _observe() -> Dict[str, bytes]:
            return {k.name: executor.query(fixture.primary, k) for k in self.state_kinds}

        return _observe

    def body(self, executor: QueryExecutor, fixture: Fixture) -> Optional[str]:
        inputs = ScenarioInputs(
            handle=fixture.primary,
            reference_kind=int(self.reference_kind),
            reference_size=self.reference_size,
            invalid_kind=self.invalid_kind,
        )
        run_error_scenario(
            executor,
            self.scenario,
            inputs,
            observe_state=self._state_observer(executor, fixture),
        )
        return None


def expand_kind_cases(
    *,
    suite_id: str,
    instance: str,
    env: CaseEnvironment,
    kinds: Sequence[IntEnum],
    sizes: InfoSizeRegistry,
    values: ValueValidator,
    validate_values: bool = True,
) -> List[KindCase]:
    """One `KindCase` per kind, in the given order."""

    return [
        KindCase(
            case_id=f"{suite_id}/{instance}__{kind.name}",
            env=env,
            kind=kind,
            sizes=sizes,
            values=values,
            validate_values=validate_values,
        )
        for kind in kinds
    ]


def run_cases(cases: Sequence[ParameterizedCase]) -> List[CaseOutcome]:
    return [case.run() for case in cases]
