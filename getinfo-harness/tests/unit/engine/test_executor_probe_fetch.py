from __future__ import annotations

import ctypes

import pytest

from info_fakes import ScriptedEntrypoint, handle_bytes, lenient_entrypoint, open_queue

from getinfo_harness.engine.executor import (
    GUARD_BYTE,
    QueryExecutor,
    byte_buffer,
    guard_intact,
    guarded_buffer,
)
from getinfo_harness.engine.sizes import HANDLE_SIZE
from getinfo_harness.engine.status import InfoQueryError, InfoStatus, ProtocolViolation
from getinfo_harness.engine.values import HANDLE
from getinfo_harness.examples.sim_runtime import SimRuntime
from getinfo_harness.targets.queue import QueueInfo


def test_probe_uses_null_buffer_and_size_cell() -> None:
    sim = SimRuntime()
    _, _, queue = open_queue(sim)
    executor = QueryExecutor(sim.queue_get_info)

    assert executor.probe(queue, QueueInfo.CONTEXT) == HANDLE_SIZE
    assert executor.calls == 1
    assert sim.calls[-1] == ("queue_get_info", int(QueueInfo.CONTEXT))


def test_query_probes_then_fetches_exactly_the_probed_size() -> None:
    sim = SimRuntime()
    _, context, queue = open_queue(sim)
    executor = QueryExecutor(sim.queue_get_info)

    data = executor.query(queue, QueueInfo.CONTEXT)
    assert len(data) == HANDLE_SIZE
    assert HANDLE.decode(data) == context
    assert executor.calls == 2


def test_call_shapes_seen_by_the_entrypoint() -> None:
    fake = ScriptedEntrypoint({0: handle_bytes(0x1234)})
    executor = QueryExecutor(fake)
    executor.query(0x99, QueueInfo.CONTEXT)

    probe, fetch = fake.calls
    assert probe == (0x99, 0, 0, False, True)
    assert fetch == (0x99, 0, HANDLE_SIZE, True, False)


def test_probe_error_is_reported_with_phase() -> None:
    sim = SimRuntime()
    _, _, queue = open_queue(sim)
    executor = QueryExecutor(sim.queue_get_info)

    with pytest.raises(InfoQueryError) as excinfo:
        executor.probe(queue, QueueInfo.DEVICE_DEFAULT)
    assert excinfo.value.unsupported is True
    assert excinfo.value.phase == "probe"
    assert excinfo.value.status is InfoStatus.UNSUPPORTED_ENUMERATION


def test_probe_reporting_zero_size_is_a_protocol_violation() -> None:
    fake = ScriptedEntrypoint({4: b"\x01\x00\x00\x00"}, probe_size_delta=-4)
    with pytest.raises(ProtocolViolation, match="zero size"):
        QueryExecutor(fake).probe(0x99, QueueInfo.REFERENCE_COUNT)


def test_fetch_detects_writes_past_the_requested_size() -> None:
    fake = ScriptedEntrypoint({4: b"\x01\x00\x00\x00"}, overrun=4)
    with pytest.raises(ProtocolViolation, match="wrote past the end"):
        QueryExecutor(fake).fetch(0x99, QueueInfo.REFERENCE_COUNT, 4)


def test_fetch_returns_the_whole_view_even_when_nothing_was_written() -> None:
    data = QueryExecutor(lenient_entrypoint).fetch(0x99, QueueInfo.FLAGS, 4)
    assert data == b"\x00" * 4


def test_fetch_error_status_raises_info_query_error() -> None:
    fake = ScriptedEntrypoint({}, status=3)
    with pytest.raises(InfoQueryError) as excinfo:
        QueryExecutor(fake).fetch(0x99, QueueInfo.FLAGS, 4)
    assert excinfo.value.status == 3
    assert excinfo.value.phase == "fetch"


@pytest.mark.parametrize("size", [0, -4])
def test_fetch_refuses_non_positive_sizes_without_calling(size: int) -> None:
    fake = ScriptedEntrypoint({3: b"\x00" * 4})
    executor = QueryExecutor(fake)
    with pytest.raises(ValueError):
        executor.fetch(0x99, QueueInfo.FLAGS, size)
    assert executor.calls == 0
    assert fake.calls == []


def test_guarded_buffer_view_and_canary() -> None:
    with guarded_buffer(8, guard=4) as (view, backing):
        assert len(view) == 8
        assert len(backing) == 12
        assert guard_intact(backing, 8)
        assert bytes(backing)[8:] == bytes([GUARD_BYTE]) * 4

        ctypes.memmove(view, b"\x00" * 9, 9)
        assert not guard_intact(backing, 8)


def test_byte_buffer_fill() -> None:
    buf = byte_buffer(5, fill=0x5A)
    assert bytes(buf) == b"\x5a" * 5
    assert bytes(byte_buffer(3)) == b"\x00" * 3
