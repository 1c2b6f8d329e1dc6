"""Per-kind value decoding and assertions.

Each kind maps to a `ValueRule`: a fixed-width decoder plus an optional
predicate over the decoded value and the fixture's reference handles. A
decoder refuses any buffer whose length differs from its width, so a value
is never reinterpreted as a different kind's representation.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

from getinfo_harness.engine.status import CaseFailure

ValuePredicate = Callable[[Any, Mapping[str, Any]], None]


@dataclass(frozen=True)
class FixedWidthDecoder:
    name: str
    width: int
    unpack: Callable[[bytes], Any]

    def decode(self, data: bytes) -> Any:
        if len(data) != self.width:
            raise CaseFailure(
                f"value is not a {self.name}",
                expected=f"{self.width} bytes",
                actual=f"{len(data)} bytes",
            )
        return self.unpack(bytes(data))


def _unpack_handle(data: bytes) -> Optional[int]:
    return ctypes.c_void_p.from_buffer_copy(data).value


def _unpack_uint32(data: bytes) -> int:
    return int(ctypes.c_uint32.from_buffer_copy(data).value)


def _unpack_bool8(data: bytes) -> bool:
    return bool(ctypes.c_uint8.from_buffer_copy(data).value)


HANDLE = FixedWidthDecoder("handle", ctypes.sizeof(ctypes.c_void_p), _unpack_handle)
UINT32 = FixedWidthDecoder("uint32", ctypes.sizeof(ctypes.c_uint32), _unpack_uint32)
BOOL8 = FixedWidthDecoder("bool", ctypes.sizeof(ctypes.c_uint8), _unpack_bool8)


def format_handle(value: Any) -> str:
    if not value:
        return "null"
    return f"0x{int(value):x}"


def equals_reference(ref_name: str) -> ValuePredicate:
    """Decoded handle must equal the fixture reference named `ref_name`."""

    def _check(value: Any, references: Mapping[str, Any]) -> None:
        if ref_name not in references:
            raise CaseFailure(
                f"fixture has no {ref_name!r} reference handle",
                expected=ref_name,
                actual=sorted(references),
            )
        expected = references[ref_name]
        if value != expected:
            raise CaseFailure(
                f"returned {ref_name} handle does not match the fixture",
                expected=format_handle(expected),
                actual=format_handle(value),
            )

    return _check


def strictly_positive(value: Any, references: Mapping[str, Any]) -> None:
    _ = references
    if not value > 0:
        raise CaseFailure("value must be strictly positive", expected="> 0", actual=value)


@dataclass(frozen=True)
class ValueRule:
    decoder: FixedWidthDecoder
    predicate: Optional[ValuePredicate] = None


class ValueValidator:
    def __init__(self, rules: Mapping[IntEnum, ValueRule]) -> None:
        self._rules: Mapping[IntEnum, ValueRule] = MappingProxyType(dict(rules))

    def rule_for(self, kind: IntEnum) -> Optional[ValueRule]:
        return self._rules.get(kind)

    def decode(self, kind: IntEnum, data: bytes) -> Any:
        rule = self._rules.get(kind)
        if rule is None:
            return bytes(data)
        return rule.decoder.decode(data)

    def validate(self, kind: IntEnum, data: bytes, references: Mapping[str, Any]) -> Any:
        """Decode `data` for `kind` and run its predicate; return the decoded value."""

        value = self.decode(kind, data)
        rule = self._rules.get(kind)
        if rule is not None and rule.predicate is not None:
            rule.predicate(value, references)
        return value
