"""Contracts of the external runtime the engine is pointed at.

The engine only consumes these: device enumeration, context and queue
lifecycle, and the two info entrypoints. Implementations raise
`FixtureSetupError` when a handle cannot be created.
"""

from __future__ import annotations

import ctypes
import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.\-]+")


@dataclass(frozen=True)
class DeviceRef:
    handle: int
    name: str

    @property
    def instance_name(self) -> str:
        """Device name usable inside a case id."""

        normalized = _UNSAFE_NAME_RE.sub("_", str(self.name or "").strip()).strip("._")
        return normalized or f"device_{self.handle:x}"


class QueueRuntime(Protocol):
    def devices(self) -> Sequence[DeviceRef]: ...

    def context_create(self, devices: Sequence[int]) -> int: ...

    def context_release(self, context: int) -> None: ...

    def queue_create(self, context: int, device: int, flags: int) -> int: ...

    def queue_release(self, queue: int) -> None: ...

    def queue_get_info(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int: ...

    def device_get_info(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int: ...
