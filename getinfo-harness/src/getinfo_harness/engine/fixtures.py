"""Borrowed fixtures and their lifecycle.

The engine never creates or releases handles itself. A fixture builder is
supplied by the collaborator side; it acquires handles and registers their
release on an `ExitStack`. `FixtureScope` guarantees the stack is unwound on
every exit path, including a failing check inside the case body and a
builder that fails halfway through.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)


class FixtureSetupError(RuntimeError):
    """Raised by collaborators when a fixture handle cannot be created."""


class FixtureTeardownError(RuntimeError):
    """Raised when releasing a fixture fails after an otherwise clean case."""


class FixtureState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TORN_DOWN = "torn_down"


@dataclass(frozen=True)
class Fixture:
    """Handles borrowed for one case.

    `primary` is the object under test; `references` holds the handles it
    was built from (for a queue: its context and device).
    """

    primary: int
    references: Mapping[str, Any] = field(default_factory=dict)
    label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "references", MappingProxyType(dict(self.references)))


FixtureBuilder = Callable[[ExitStack], Fixture]


class FixtureScope:
    def __init__(self, build: FixtureBuilder, *, label: str = "") -> None:
        self._build = build
        self._stack: Optional[ExitStack] = None
        self.label = label
        self.state = FixtureState.UNINITIALIZED

    def __enter__(self) -> Fixture:
        if self.state is not FixtureState.UNINITIALIZED:
            raise RuntimeError(f"fixture scope already used (state={self.state.value})")
        stack = ExitStack()
        try:
            fixture = self._build(stack)
        except BaseException:
            self.state = FixtureState.TORN_DOWN
            try:
                stack.close()
            except Exception as err:
                logger.warning("fixture %s: unwinding partial setup failed: %s", self.label or "?", err)
            raise
        self._stack = stack
        self.state = FixtureState.READY
        return fixture

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        """Release the fixture.

        A release error never masks an exception raised by the case body; it
        is logged instead. On a clean body it surfaces as
        `FixtureTeardownError`.
        """
        stack, self._stack = self._stack, None
        try:
            if stack is not None:
                stack.close()
        except Exception as err:
            if exc_type is not None:
                logger.warning("fixture %s: teardown failed after case error: %s", self.label or "?", err)
                return False
            raise FixtureTeardownError(f"fixture {self.label or '?'} teardown failed: {err}") from err
        finally:
            self.state = FixtureState.TORN_DOWN
        return False
