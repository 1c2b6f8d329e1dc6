"""Fixed-size expectations for info kinds.

Handle-valued kinds are pointer sized, counts and flag words are 32 bit and
runtime booleans are a single byte. Kinds with variable-size values simply
have no entry; the size cross-check is skipped for them.
"""

from __future__ import annotations

import ctypes
from enum import IntEnum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

HANDLE_SIZE = ctypes.sizeof(ctypes.c_void_p)
UINT32_SIZE = ctypes.sizeof(ctypes.c_uint32)
BOOL_SIZE = ctypes.sizeof(ctypes.c_uint8)


class InfoSizeRegistry:
    """Read-only kind -> byte size table, built once per object type."""

    def __init__(self, sizes: Mapping[IntEnum, int]) -> None:
        table = {}
        for kind, size in sizes.items():
            if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
                raise ValueError(f"expected size for {kind!r} must be a positive int, got {size!r}")
            table[kind] = size
        self._sizes: Mapping[IntEnum, int] = MappingProxyType(table)

    def expected_size(self, kind: IntEnum) -> Optional[int]:
        return self._sizes.get(kind)

    def as_mapping(self) -> Mapping[IntEnum, int]:
        return self._sizes

    def items(self) -> Iterator[Tuple[IntEnum, int]]:
        return iter(self._sizes.items())

    def __contains__(self, kind: object) -> bool:
        return kind in self._sizes

    def __len__(self) -> int:
        return len(self._sizes)
