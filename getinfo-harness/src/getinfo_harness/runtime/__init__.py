"""Runtime side of the harness: collaborator contracts, backends and the suite runner.

Submodules are imported explicitly (`getinfo_harness.runtime.suite_runner`,
`getinfo_harness.runtime.backends`); targets depend on the collaborator
contracts defined here.
"""

from __future__ import annotations

__all__ = [
    "backends",
    "collaborator",
    "suite_runner",
]
