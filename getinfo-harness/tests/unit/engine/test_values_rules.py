from __future__ import annotations

import pytest

from info_fakes import handle_bytes, uint32_bytes

from getinfo_harness.engine.status import CaseFailure
from getinfo_harness.engine.values import (
    BOOL8,
    HANDLE,
    UINT32,
    ValueRule,
    ValueValidator,
    equals_reference,
    format_handle,
    strictly_positive,
)
from getinfo_harness.targets.queue import QUEUE_VALUE_RULES, QueueInfo


def test_decoders_read_native_representations() -> None:
    assert HANDLE.decode(handle_bytes(0x1234)) == 0x1234
    assert HANDLE.decode(handle_bytes(None)) is None
    assert UINT32.decode(uint32_bytes(7)) == 7
    assert BOOL8.decode(b"\x01") is True
    assert BOOL8.decode(b"\x00") is False


def test_decoder_rejects_wrong_width() -> None:
    with pytest.raises(CaseFailure) as excinfo:
        UINT32.decode(b"\x01\x00")
    assert excinfo.value.expected == "4 bytes"
    assert excinfo.value.actual == "2 bytes"


def test_equals_reference_compares_against_fixture_handle() -> None:
    check = equals_reference("context")
    check(0x10, {"context": 0x10})

    with pytest.raises(CaseFailure) as excinfo:
        check(0x20, {"context": 0x10})
    assert excinfo.value.expected == "0x10"
    assert excinfo.value.actual == "0x20"

    with pytest.raises(CaseFailure, match="no 'context' reference"):
        check(0x10, {"device": 0x10})


def test_strictly_positive() -> None:
    strictly_positive(1, {})
    with pytest.raises(CaseFailure, match="strictly positive"):
        strictly_positive(0, {})


def test_format_handle() -> None:
    assert format_handle(None) == "null"
    assert format_handle(0) == "null"
    assert format_handle(0xABC) == "0xabc"


def test_validator_without_rule_returns_raw_bytes() -> None:
    validator = ValueValidator({QueueInfo.FLAGS: ValueRule(UINT32)})
    assert validator.rule_for(QueueInfo.EMPTY) is None
    assert validator.validate(QueueInfo.EMPTY, b"\x01", {}) == b"\x01"
    assert validator.validate(QueueInfo.FLAGS, uint32_bytes(5), {}) == 5


def test_queue_rules_check_context_device_and_refcount() -> None:
    refs = {"context": 0x100, "device": 0x200}
    assert QUEUE_VALUE_RULES.validate(QueueInfo.CONTEXT, handle_bytes(0x100), refs) == 0x100
    assert QUEUE_VALUE_RULES.validate(QueueInfo.DEVICE, handle_bytes(0x200), refs) == 0x200
    assert QUEUE_VALUE_RULES.validate(QueueInfo.REFERENCE_COUNT, uint32_bytes(1), refs) == 1
    assert QUEUE_VALUE_RULES.validate(QueueInfo.EMPTY, b"\x01", refs) is True

    with pytest.raises(CaseFailure):
        QUEUE_VALUE_RULES.validate(QueueInfo.DEVICE, handle_bytes(0x100), refs)
    with pytest.raises(CaseFailure):
        QUEUE_VALUE_RULES.validate(QueueInfo.REFERENCE_COUNT, uint32_bytes(0), refs)
