from __future__ import annotations

import ctypes
import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from getinfo_harness.engine.fixtures import FixtureSetupError
from getinfo_harness.engine.status import InfoStatus
from getinfo_harness.runtime.collaborator import DeviceRef
from getinfo_harness.targets.queue import DeviceInfo, QueueFlag, QueueInfo

# Object-specific errors outside the engine's taxonomy; reported verbatim.
RESULT_ERROR_INVALID_QUEUE = 3
RESULT_ERROR_INVALID_DEVICE = 19

SIM_DEVICE_QUEUE_SIZE = 64 * 1024

_QUEUE_PROPERTIES = int(QueueFlag.OUT_OF_ORDER_EXEC_MODE_ENABLE | QueueFlag.PROFILING_ENABLE)


def _handle_bytes(handle: Optional[int]) -> bytes:
    return bytes(ctypes.c_void_p(handle or None))


def _uint32_bytes(value: int) -> bytes:
    return bytes(ctypes.c_uint32(int(value)))


def _bool_bytes(value: bool) -> bytes:
    return bytes(ctypes.c_uint8(1 if value else 0))


@dataclass
class _SimDevice:
    handle: int
    name: str
    on_device_properties: int
    default_queue: Optional[int] = None


@dataclass
class _SimContext:
    devices: Tuple[int, ...]
    refcount: int = 1


@dataclass
class _SimQueue:
    context: int
    device: int
    flags: int
    refcount: int = 1


@dataclass
class SimRuntime:
    """An in-process reference runtime for the queue info target.

    It implements context/queue lifecycle plus `queue_get_info` and
    `device_get_info` with the full call-shape validation a conforming
    implementation performs. Used by tests and by the CLI `sim` backend.
    """

    device_count: int = 1
    on_device_queues: bool = False
    device_names: Sequence[str] = ()
    calls: List[Tuple[str, int]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._next_handle = itertools.count(0x10000, 0x100)
        self._devices: Dict[int, _SimDevice] = {}
        self._contexts: Dict[int, _SimContext] = {}
        self._queues: Dict[int, _SimQueue] = {}
        names = list(self.device_names)
        for i in range(int(self.device_count)):
            handle = next(self._next_handle)
            name = names[i] if i < len(names) else f"Sim Device {i}"
            self._devices[handle] = _SimDevice(
                handle=handle,
                name=name,
                on_device_properties=_QUEUE_PROPERTIES if self.on_device_queues else 0,
            )

    # -- lifecycle ---------------------------------------------------------

    def devices(self) -> List[DeviceRef]:
        return [DeviceRef(handle=d.handle, name=d.name) for d in self._devices.values()]

    def context_create(self, devices: Sequence[int]) -> int:
        unknown = [d for d in devices if d not in self._devices]
        if not devices or unknown:
            raise FixtureSetupError(f"cannot create context for devices {list(devices)!r}")
        handle = next(self._next_handle)
        self._contexts[handle] = _SimContext(devices=tuple(devices))
        return handle

    def context_release(self, context: int) -> None:
        ctx = self._contexts.get(context)
        if ctx is None:
            raise FixtureSetupError(f"release of unknown context 0x{context:x}")
        ctx.refcount -= 1
        if ctx.refcount == 0:
            del self._contexts[context]

    def queue_create(self, context: int, device: int, flags: int) -> int:
        ctx = self._contexts.get(context)
        if ctx is None or device not in ctx.devices:
            raise FixtureSetupError("queue_create: device is not part of the context")
        flags = int(flags)
        on_device = bool(flags & QueueFlag.ON_DEVICE)
        if flags & QueueFlag.ON_DEVICE_DEFAULT and not on_device:
            raise FixtureSetupError("queue_create: ON_DEVICE_DEFAULT requires ON_DEVICE")
        dev = self._devices[device]
        if on_device and not dev.on_device_properties:
            raise FixtureSetupError(f"queue_create: {dev.name} has no on-device queues")
        handle = next(self._next_handle)
        self._queues[handle] = _SimQueue(context=context, device=device, flags=flags)
        ctx.refcount += 1
        if flags & QueueFlag.ON_DEVICE_DEFAULT:
            dev.default_queue = handle
        return handle

    def queue_release(self, queue: int) -> None:
        q = self._queues.get(queue)
        if q is None:
            raise FixtureSetupError(f"release of unknown queue 0x{queue:x}")
        q.refcount -= 1
        if q.refcount:
            return
        del self._queues[queue]
        dev = self._devices[q.device]
        if dev.default_queue == queue:
            dev.default_queue = None
        self.context_release(q.context)

    def live_handles(self) -> int:
        return len(self._contexts) + len(self._queues)

    def reference_count(self, queue: int) -> int:
        return self._queues[queue].refcount

    # -- info entrypoints --------------------------------------------------

    def queue_get_info(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int:
        self.calls.append(("queue_get_info", int(kind)))
        status = _check_call_shape(handle, kind, QueueInfo, size, buffer, size_ret)
        if status is not None:
            return status
        q = self._queues.get(int(handle))
        if q is None:
            return RESULT_ERROR_INVALID_QUEUE

        info = QueueInfo(kind)
        on_device = bool(q.flags & QueueFlag.ON_DEVICE)
        if info is QueueInfo.CONTEXT:
            value = _handle_bytes(q.context)
        elif info is QueueInfo.DEVICE:
            value = _handle_bytes(q.device)
        elif info is QueueInfo.DEVICE_DEFAULT:
            if not on_device:
                return InfoStatus.UNSUPPORTED_ENUMERATION
            value = _handle_bytes(self._devices[q.device].default_queue)
        elif info is QueueInfo.FLAGS:
            value = _uint32_bytes(q.flags)
        elif info is QueueInfo.REFERENCE_COUNT:
            value = _uint32_bytes(q.refcount)
        elif info is QueueInfo.SIZE:
            if not on_device:
                return InfoStatus.UNSUPPORTED_ENUMERATION
            value = _uint32_bytes(SIM_DEVICE_QUEUE_SIZE)
        else:
            value = _bool_bytes(True)
        return _return_value(value, size, buffer, size_ret)

    def device_get_info(
        self,
        handle: Optional[int],
        kind: int,
        size: int,
        buffer: Optional[ctypes.Array],
        size_ret: Optional[ctypes.c_size_t],
    ) -> int:
        self.calls.append(("device_get_info", int(kind)))
        status = _check_call_shape(handle, kind, DeviceInfo, size, buffer, size_ret)
        if status is not None:
            return status
        dev = self._devices.get(int(handle))
        if dev is None:
            return RESULT_ERROR_INVALID_DEVICE

        if DeviceInfo(kind) is DeviceInfo.QUEUE_ON_DEVICE_PROPERTIES:
            value = _uint32_bytes(dev.on_device_properties)
        else:
            value = _uint32_bytes(_QUEUE_PROPERTIES)
        return _return_value(value, size, buffer, size_ret)

    def queue_info_calls(self) -> int:
        return sum(1 for name, _ in self.calls if name == "queue_get_info")


def _check_call_shape(
    handle: Optional[int],
    kind: int,
    kinds: type,
    size: int,
    buffer: Optional[ctypes.Array],
    size_ret: Optional[ctypes.c_size_t],
) -> Optional[int]:
    if not handle:
        return InfoStatus.INVALID_NULL_HANDLE
    try:
        kinds(int(kind))
    except ValueError:
        return InfoStatus.INVALID_ENUMERATION
    if size != 0 and buffer is None:
        return InfoStatus.INVALID_NULL_POINTER
    if buffer is None and size_ret is None:
        return InfoStatus.INVALID_NULL_POINTER
    if size == 0 and buffer is not None:
        return InfoStatus.INVALID_SIZE
    return None


def _return_value(
    value: bytes,
    size: int,
    buffer: Optional[ctypes.Array],
    size_ret: Optional[ctypes.c_size_t],
) -> int:
    if buffer is not None:
        if size < len(value):
            return InfoStatus.INVALID_SIZE
        ctypes.memmove(buffer, value, len(value))
    if size_ret is not None:
        size_ret.value = len(value)
    return InfoStatus.SUCCESS
