"""Bridges from case outcomes to external test runners."""

from __future__ import annotations

__all__ = ["pytest_bridge"]
