"""Info targets: one description per queryable object type.

Adding a new object type should not require changing engine or
runner code. A target bundles the kind enumeration, the size registry, the
value rules and the collaborator hooks; it registers itself here.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, Callable, Dict, Iterable, Sequence, Type

from getinfo_harness.engine.executor import InfoEntrypoint
from getinfo_harness.engine.fixtures import FixtureBuilder
from getinfo_harness.engine.sizes import InfoSizeRegistry
from getinfo_harness.engine.values import ValueValidator
from getinfo_harness.runtime.collaborator import DeviceRef


@dataclass(frozen=True)
class InfoTarget:
    name: str
    kinds: Type[IntEnum]
    sizes: InfoSizeRegistry
    values: ValueValidator
    invalid_kind: int
    matrix_reference_kind: IntEnum
    flags: Type[IntFlag]
    device_info: Type[IntEnum]
    entrypoint: Callable[[Any], InfoEntrypoint]
    device_entrypoint: Callable[[Any], InfoEntrypoint]
    fixture_builder: Callable[[Any, DeviceRef, int], FixtureBuilder]
    state_kinds: Sequence[IntEnum] = field(default_factory=tuple)

    def kind(self, name: str) -> IntEnum:
        try:
            return self.kinds[str(name).strip().upper()]
        except KeyError:
            raise KeyError(f"unknown {self.name} info kind: {name!r}") from None

    def flag_mask(self, names: Iterable[str]) -> int:
        mask = 0
        for name in names:
            try:
                mask |= int(self.flags[str(name).strip().upper()])
            except KeyError:
                raise KeyError(f"unknown {self.name} flag: {name!r}") from None
        return mask

    def device_info_kind(self, name: str) -> IntEnum:
        try:
            return self.device_info[str(name).strip().upper()]
        except KeyError:
            raise KeyError(f"unknown device info kind: {name!r}") from None


_REGISTRY: Dict[str, InfoTarget] = {}
_BUILTIN_TARGET_MODULES = [
    "getinfo_harness.targets.queue",
]
_BUILTINS_LOADED = False


def register_target(target: InfoTarget) -> InfoTarget:
    if target.name in _REGISTRY:
        raise ValueError(f"duplicate info target: {target.name}")
    _REGISTRY[target.name] = target
    return target


def load_builtin_targets() -> None:
    global _BUILTINS_LOADED
    if _BUILTINS_LOADED:
        return
    for module_name in _BUILTIN_TARGET_MODULES:
        importlib.import_module(module_name)
    _BUILTINS_LOADED = True


def available_targets() -> Dict[str, InfoTarget]:
    load_builtin_targets()
    return dict(_REGISTRY)


def get_target(name: str) -> InfoTarget:
    load_builtin_targets()
    key = str(name or "").strip()
    if key not in _REGISTRY:
        raise KeyError(f"unknown info target: {name!r} (known: {sorted(_REGISTRY)})")
    return _REGISTRY[key]
