"""Backends: where the info entrypoints come from.

`CTypesInfoEntrypoint` adapts a native function with the prototype

    int32_t fn(void *handle, uint32_t kind, size_t size, void *value, size_t *size_ret)

to the engine's entrypoint shape. `None` is passed as NULL for the handle,
the value buffer and the size cell; a non-null size cell is passed by
reference so the callee can write it.

Memory / ownership notes:
- The value buffer is owned by the caller (the engine) for the duration of
  the call only; the callee must not retain the pointer.
"""

from __future__ import annotations

import ctypes
from typing import Any, Optional, Union

from getinfo_harness.runtime.collaborator import QueueRuntime

INFO_FN_ARGTYPES = [
    ctypes.c_void_p,
    ctypes.c_uint32,
    ctypes.c_size_t,
    ctypes.c_void_p,
    ctypes.POINTER(ctypes.c_size_t),
]
INFO_FN_RESTYPE = ctypes.c_int32

INFO_FN_PROTOTYPE = ctypes.CFUNCTYPE(INFO_FN_RESTYPE, *INFO_FN_ARGTYPES)

BACKEND_NAMES = ("sim",)


def load_library(path: str) -> ctypes.CDLL:
    try:
        return ctypes.CDLL(path)
    except OSError as exc:
        raise RuntimeError(f"failed to load {path}: {exc}") from exc


class CTypesInfoEntrypoint:
    def __init__(self, fn: Any, *, name: Optional[str] = None) -> None:
        # Foreign functions from a CDLL accept prototypes; CFUNCTYPE objects carry their own.
        if not isinstance(fn, INFO_FN_PROTOTYPE):
            fn.argtypes = INFO_FN_ARGTYPES
            fn.restype = INFO_FN_RESTYPE
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "getInfo")

    @classmethod
    def from_library(cls, lib: Union[ctypes.CDLL, str], symbol: str) -> "CTypesInfoEntrypoint":
        if isinstance(lib, str):
            lib = load_library(lib)
        try:
            fn = getattr(lib, symbol)
        except AttributeError as exc:
            raise RuntimeError(f"symbol {symbol!r} not exported by {lib!r}") from exc
        return cls(fn, name=symbol)

    def __call__(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int:
        value_ptr = ctypes.cast(buffer, ctypes.c_void_p) if buffer is not None else None
        size_ptr = ctypes.pointer(size_ret) if size_ret is not None else None
        return int(self._fn(handle or None, int(kind), int(size), value_ptr, size_ptr))


def make_backend(name: str, **options: Any) -> QueueRuntime:
    """Construct a runtime collaborator by backend name."""

    key = str(name or "").strip().lower()
    if key == "sim":
        from getinfo_harness.examples.sim_runtime import SimRuntime

        return SimRuntime(
            device_count=int(options.get("device_count", 1)),
            on_device_queues=bool(options.get("on_device_queues", False)),
            device_names=tuple(options.get("device_names") or ()),
        )
    raise ValueError(f"unknown backend {name!r} (known: {', '.join(BACKEND_NAMES)})")
