"""Example / reference components for local development (not part of the engine)."""

from __future__ import annotations

from getinfo_harness.examples.sim_runtime import SimRuntime

__all__ = [
    "SimRuntime",
]
