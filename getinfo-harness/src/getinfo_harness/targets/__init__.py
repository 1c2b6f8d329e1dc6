"""Object types the engine knows how to exercise."""

from __future__ import annotations

from getinfo_harness.targets.base import (
    InfoTarget,
    available_targets,
    get_target,
    register_target,
)

__all__ = [
    "InfoTarget",
    "available_targets",
    "get_target",
    "register_target",
]
