"""Queue info target.

Kind and flag values follow `ur_queue_info_t` / `ur_queue_flags_t`.
"""

from __future__ import annotations

from contextlib import ExitStack
from enum import IntEnum, IntFlag

from getinfo_harness.engine.executor import InfoEntrypoint
from getinfo_harness.engine.fixtures import Fixture, FixtureBuilder
from getinfo_harness.engine.sizes import BOOL_SIZE, HANDLE_SIZE, UINT32_SIZE, InfoSizeRegistry
from getinfo_harness.engine.values import (
    BOOL8,
    HANDLE,
    UINT32,
    ValueRule,
    ValueValidator,
    equals_reference,
    strictly_positive,
)
from getinfo_harness.runtime.collaborator import DeviceRef, QueueRuntime
from getinfo_harness.targets.base import InfoTarget, register_target


class QueueInfo(IntEnum):
    CONTEXT = 0
    DEVICE = 1
    DEVICE_DEFAULT = 2
    FLAGS = 3
    REFERENCE_COUNT = 4
    SIZE = 5
    EMPTY = 6


QUEUE_INFO_FORCE_UINT32 = 0x7FFFFFFF


class QueueFlag(IntFlag):
    OUT_OF_ORDER_EXEC_MODE_ENABLE = 1 << 0
    PROFILING_ENABLE = 1 << 1
    ON_DEVICE = 1 << 2
    ON_DEVICE_DEFAULT = 1 << 3
    DISCARD_EVENTS = 1 << 4
    PRIORITY_LOW = 1 << 5
    PRIORITY_HIGH = 1 << 6


class DeviceInfo(IntEnum):
    QUEUE_ON_DEVICE_PROPERTIES = 53
    QUEUE_ON_HOST_PROPERTIES = 54


QUEUE_INFO_SIZES = InfoSizeRegistry(
    {
        QueueInfo.CONTEXT: HANDLE_SIZE,
        QueueInfo.DEVICE: HANDLE_SIZE,
        QueueInfo.DEVICE_DEFAULT: HANDLE_SIZE,
        QueueInfo.FLAGS: UINT32_SIZE,
        QueueInfo.REFERENCE_COUNT: UINT32_SIZE,
        QueueInfo.SIZE: UINT32_SIZE,
        QueueInfo.EMPTY: BOOL_SIZE,
    }
)

QUEUE_VALUE_RULES = ValueValidator(
    {
        QueueInfo.CONTEXT: ValueRule(HANDLE, equals_reference("context")),
        QueueInfo.DEVICE: ValueRule(HANDLE, equals_reference("device")),
        QueueInfo.DEVICE_DEFAULT: ValueRule(HANDLE),
        QueueInfo.FLAGS: ValueRule(UINT32),
        QueueInfo.REFERENCE_COUNT: ValueRule(UINT32, strictly_positive),
        QueueInfo.SIZE: ValueRule(UINT32),
        QueueInfo.EMPTY: ValueRule(BOOL8),
    }
)


def queue_fixture_builder(runtime: QueueRuntime, device: DeviceRef, flags: int) -> FixtureBuilder:
    """Context on `device`, then a queue with `flags`; both released on exit."""

    def _build(stack: ExitStack) -> Fixture:
        context = runtime.context_create([device.handle])
        stack.callback(runtime.context_release, context)
        queue = runtime.queue_create(context, device.handle, int(flags))
        stack.callback(runtime.queue_release, queue)
        return Fixture(
            primary=queue,
            references={"context": context, "device": device.handle},
            label=device.name,
        )

    return _build


def _queue_entrypoint(runtime: QueueRuntime) -> InfoEntrypoint:
    return runtime.queue_get_info


def _device_entrypoint(runtime: QueueRuntime) -> InfoEntrypoint:
    return runtime.device_get_info


QUEUE_TARGET = register_target(
    InfoTarget(
        name="queue",
        kinds=QueueInfo,
        sizes=QUEUE_INFO_SIZES,
        values=QUEUE_VALUE_RULES,
        invalid_kind=QUEUE_INFO_FORCE_UINT32,
        matrix_reference_kind=QueueInfo.CONTEXT,
        flags=QueueFlag,
        device_info=DeviceInfo,
        entrypoint=_queue_entrypoint,
        device_entrypoint=_device_entrypoint,
        fixture_builder=queue_fixture_builder,
        state_kinds=(QueueInfo.REFERENCE_COUNT,),
    )
)
