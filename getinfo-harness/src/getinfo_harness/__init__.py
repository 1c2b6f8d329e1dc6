"""getinfo-harness: conformance engine for GetInfo-style entrypoints.

Provides:
- a generic probe/fetch engine (size registry, value rules, capability
  gates, malformed-input matrix)
- the queue info target
- YAML suite profiles, a suite runner and JSON reporting
- an in-process simulated runtime for local runs (no device required)
"""

__all__ = [
    "cli",
    "engine",
    "examples",
    "integration",
    "reporting",
    "runtime",
    "spec",
    "targets",
]
