"""Capability gating for specialized fixture configurations.

A gate reads a capability bitmask from the device collaborator before a
fixture is built. When the required bits are missing the whole case is
skipped and no query is issued against the object under test.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Sequence

from getinfo_harness.engine.executor import QueryExecutor
from getinfo_harness.engine.status import CaseSkipped
from getinfo_harness.engine.values import UINT32

logger = logging.getLogger(__name__)

CapabilityQuery = Callable[[int], int]


@dataclass(frozen=True)
class CapabilityRequirement:
    """Device info kind to read, and the bits that must be present.

    `required_bits=None` means "any bit set": an all-zero mask is the
    runtime's way of saying the feature is not supported at all.
    """

    info_kind: IntEnum
    required_bits: Optional[int] = None

    @property
    def label(self) -> str:
        return self.info_kind.name

    def missing_bits(self, bitmask: int) -> int:
        if self.required_bits is None:
            return 0 if bitmask else ~0
        return int(self.required_bits) & ~int(bitmask)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    bitmask: int
    reason: str = ""


def format_missing_capabilities_reason(missing: Sequence[str], *, detail: str) -> str:
    """Format a deterministic, readable reason string for missing capabilities."""

    missing_list = [str(x) for x in missing if str(x).strip()]
    prefix = ", ".join(missing_list) if missing_list else "capability"
    suffix = str(detail).strip()
    if not suffix:
        return f"missing {prefix}"
    return f"missing {prefix}: {suffix}"


def device_capability_query(executor: QueryExecutor, info_kind: IntEnum) -> CapabilityQuery:
    """Build a query reading a 32-bit capability mask with a single fetch."""

    def _query(device: int) -> int:
        data = executor.fetch(device, info_kind, UINT32.width)
        return int(UINT32.decode(data))

    return _query


class CapabilityGate:
    def __init__(self, requirement: CapabilityRequirement, query: CapabilityQuery) -> None:
        self.requirement = requirement
        self._query = query

    def decide(self, device: int) -> GateDecision:
        bitmask = int(self._query(device)) & 0xFFFFFFFF
        missing = self.requirement.missing_bits(bitmask)
        if not missing:
            return GateDecision(allowed=True, bitmask=bitmask)
        if self.requirement.required_bits is None:
            detail = "device reports no support"
        else:
            detail = f"device mask 0x{bitmask:x} lacks bits 0x{missing & 0xFFFFFFFF:x}"
        reason = format_missing_capabilities_reason([self.requirement.label], detail=detail)
        return GateDecision(allowed=False, bitmask=bitmask, reason=reason)

    def enforce(self, device: int) -> GateDecision:
        """Raise `CaseSkipped` when `device` lacks the required capability."""

        decision = self.decide(device)
        if not decision.allowed:
            logger.info("capability gate closed for device 0x%x: %s", int(device), decision.reason)
            raise CaseSkipped(decision.reason)
        return decision
