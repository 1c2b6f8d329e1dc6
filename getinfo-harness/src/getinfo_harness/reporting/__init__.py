"""Reporting helpers (outcome counts + JSON result files)."""

from __future__ import annotations

from getinfo_harness.reporting.aggregate import (
    SUITE_MANIFEST_JSON,
    SUITE_RESULTS_JSON,
    build_report,
    count_results,
    format_outcome_line,
    overall_rc,
    write_results,
)

__all__ = [
    "SUITE_MANIFEST_JSON",
    "SUITE_RESULTS_JSON",
    "build_report",
    "count_results",
    "format_outcome_line",
    "overall_rc",
    "write_results",
]
