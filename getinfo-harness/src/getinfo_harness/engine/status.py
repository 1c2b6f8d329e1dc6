"""Status taxonomy for GetInfo-style entrypoints.

Numeric codes follow the Unified Runtime `ur_result_t` values so native
entrypoints bound through ctypes can be compared without translation.
Codes outside the taxonomy are kept as plain ints and reported verbatim.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional, Union


class InfoStatus(IntEnum):
    SUCCESS = 0
    INVALID_NULL_HANDLE = 47
    INVALID_NULL_POINTER = 49
    INVALID_SIZE = 50
    INVALID_ENUMERATION = 54
    UNSUPPORTED_ENUMERATION = 55


StatusCode = Union[InfoStatus, int]


def status_from_code(code: Any) -> StatusCode:
    value = int(code)
    try:
        return InfoStatus(value)
    except ValueError:
        return value


def status_name(code: Any) -> str:
    status = status_from_code(code)
    if isinstance(status, InfoStatus):
        return status.name
    return f"UNKNOWN({status})"


class InfoQueryError(RuntimeError):
    """Raised when an info query returns a non-success status."""

    def __init__(self, status: StatusCode, *, kind: Any = None, phase: str = "") -> None:
        self.status = status
        self.kind = kind
        self.phase = phase
        where = f" during {phase}" if phase else ""
        what = f" for {_kind_label(kind)}" if kind is not None else ""
        super().__init__(f"info query returned {status_name(status)}{where}{what}")

    @property
    def unsupported(self) -> bool:
        return self.status == InfoStatus.UNSUPPORTED_ENUMERATION


class CaseFailure(AssertionError):
    """A check inside a case failed; carries both expected and actual values."""

    def __init__(self, message: str, *, expected: Any = None, actual: Any = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"{message}: expected {expected!r}, actual {actual!r}")
        self.message = message


class ProtocolViolation(CaseFailure):
    """The entrypoint broke the probe/fetch call contract (size or bounds)."""


class CaseSkipped(Exception):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def _kind_label(kind: Any) -> str:
    name: Optional[str] = getattr(kind, "name", None)
    if name:
        return name
    try:
        return f"kind 0x{int(kind):x}"
    except (TypeError, ValueError):
        return str(kind)
