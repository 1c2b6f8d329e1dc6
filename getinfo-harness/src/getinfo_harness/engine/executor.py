"""Two-phase probe/fetch driver for GetInfo-style entrypoints.

An entrypoint is any callable with the shape

    entrypoint(handle, kind, size, buffer, size_ret) -> status code

where `handle` is an int (or None for a null handle), `buffer` is a ctypes
byte array (or None for a null pointer) and `size_ret` is a
`ctypes.c_size_t` cell (or None for a null pointer). Native C functions are
adapted to this shape by `getinfo_harness.runtime.backends.CTypesInfoEntrypoint`.

Only two call shapes are legal:
  * probe: size=0, buffer=None, size_ret=<cell>  -> required size
  * fetch: size=N, buffer=<N bytes>, size_ret=None -> value bytes
"""

from __future__ import annotations

import ctypes
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Protocol, Tuple

from getinfo_harness.engine.status import (
    InfoQueryError,
    InfoStatus,
    ProtocolViolation,
    status_from_code,
    status_name,
)

logger = logging.getLogger(__name__)

GUARD_BYTE = 0xA5
DEFAULT_GUARD_BYTES = 16


class InfoEntrypoint(Protocol):
    def __call__(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int: ...


def byte_buffer(size: int, *, fill: int = 0) -> ctypes.Array:
    """Allocate a ctypes byte array of `size` bytes pre-filled with `fill`."""

    buf = (ctypes.c_ubyte * size)()
    if fill:
        ctypes.memset(buf, fill, size)
    return buf


@contextmanager
def guarded_buffer(size: int, *, guard: int = DEFAULT_GUARD_BYTES) -> Iterator[Tuple[ctypes.Array, ctypes.Array]]:
    """Yield `(view, backing)` where `view` is exactly `size` bytes.

    `backing` extends past the view with `guard` canary bytes so a write past
    the end of the view can be detected. The storage is scrubbed on exit,
    whatever happens inside the block.
    """

    total = size + guard
    backing = (ctypes.c_ubyte * total)()
    ctypes.memset(ctypes.addressof(backing) + size, GUARD_BYTE, guard)
    view = (ctypes.c_ubyte * size).from_buffer(backing)
    try:
        yield view, backing
    finally:
        ctypes.memset(backing, 0, total)


def guard_intact(backing: ctypes.Array, size: int) -> bool:
    return all(b == GUARD_BYTE for b in bytes(backing)[size:])


class QueryExecutor:
    """Run probe/fetch calls against one entrypoint and count every call."""

    def __init__(self, entrypoint: InfoEntrypoint, *, guard_bytes: int = DEFAULT_GUARD_BYTES) -> None:
        self._entrypoint = entrypoint
        self._guard_bytes = int(guard_bytes)
        self.calls = 0

    def call(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array] = None,
        size_ret: Optional[ctypes.c_size_t] = None,
    ) -> int:
        """Issue one raw call with an arbitrary call shape; return the status code."""

        self.calls += 1
        code = int(self._entrypoint(handle, int(kind), int(size), buffer, size_ret))
        logger.debug(
            "getInfo(handle=%s, kind=%s, size=%d, buffer=%s, size_ret=%s) -> %s",
            _fmt_handle(handle),
            _kind_str(kind),
            size,
            "null" if buffer is None else "set",
            "null" if size_ret is None else "set",
            status_name(code),
        )
        return code

    def probe(self, handle: Optional[int], kind: Any) -> int:
        size_ret = ctypes.c_size_t(0)
        code = self.call(handle, kind, 0, None, size_ret)
        status = status_from_code(code)
        if status != InfoStatus.SUCCESS:
            raise InfoQueryError(status, kind=kind, phase="probe")
        size = int(size_ret.value)
        if size == 0:
            raise ProtocolViolation(
                f"probe for {_kind_str(kind)} reported a zero size",
                expected="size > 0",
                actual=0,
            )
        return size

    def fetch(self, handle: Optional[int], kind: Any, size: int) -> bytes:
        size = int(size)
        if size <= 0:
            raise ValueError(f"fetch size must be positive, got {size}")
        with guarded_buffer(size, guard=self._guard_bytes) as (view, backing):
            code = self.call(handle, kind, size, view, None)
            status = status_from_code(code)
            if status != InfoStatus.SUCCESS:
                raise InfoQueryError(status, kind=kind, phase="fetch")
            if not guard_intact(backing, size):
                raise ProtocolViolation(
                    f"fetch for {_kind_str(kind)} wrote past the end of the buffer",
                    expected=f"at most {size} bytes",
                    actual=f"more than {size} bytes",
                )
            return bytes(view)

    def query(self, handle: Optional[int], kind: Any) -> bytes:
        """Probe then fetch with exactly the probed size."""

        return self.fetch(handle, kind, self.probe(handle, kind))


def _fmt_handle(handle: Optional[int]) -> str:
    if not handle:
        return "null"
    return f"0x{int(handle):x}"


def _kind_str(kind: Any) -> str:
    name = getattr(kind, "name", None)
    if isinstance(name, str):
        return name
    return f"0x{int(kind):x}"
