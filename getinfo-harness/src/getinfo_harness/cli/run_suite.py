from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from getinfo_harness.reporting.aggregate import (
    count_results,
    format_outcome_line,
    overall_rc,
    write_results,
)
from getinfo_harness.runtime.backends import BACKEND_NAMES, make_backend
from getinfo_harness.runtime.suite_runner import build_cases, run_profile
from getinfo_harness.spec.profile_loader import DEFAULT_PROFILE_PATH, load_profile


def _parse_suites(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    return [s.strip() for s in raw.split(",") if s.strip()] or None


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="GetInfo conformance suite (probe/fetch sizes, values, error matrix)."
    )
    parser.add_argument(
        "--profile",
        type=Path,
        default=None,
        help=f"Suite profile YAML/JSON (default: {DEFAULT_PROFILE_PATH.name})",
    )
    parser.add_argument(
        "--backend",
        choices=BACKEND_NAMES,
        default="sim",
        help="Runtime backend providing devices, fixtures and info entrypoints",
    )
    parser.add_argument("--sim_devices", type=int, default=1, help="Number of simulated devices")
    parser.add_argument(
        "--sim_on_device_queues",
        action="store_true",
        help="Simulated devices report on-device queue support",
    )
    parser.add_argument(
        "--suites",
        type=str,
        default=None,
        help="Comma-separated suite ids to run (default: all suites in the profile)",
    )
    parser.add_argument(
        "--list_cases",
        action="store_true",
        help="Dry-run: validate the profile and list case ids without issuing queries",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Directory for suite_manifest.json and suite_results.json",
    )
    parser.add_argument("--log_level", type=str, default="WARNING", help="Python logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.sim_devices < 1:
        parser.error("--sim_devices must be >= 1")

    profile = load_profile(args.profile)
    runtime = make_backend(
        args.backend,
        device_count=args.sim_devices,
        on_device_queues=args.sim_on_device_queues,
    )
    suite_ids = _parse_suites(args.suites)
    unknown = sorted(set(suite_ids or ()) - {s.suite_id for s in profile.suites})
    if unknown:
        parser.error(f"unknown suite id(s): {', '.join(unknown)}")

    if args.list_cases:
        cases = build_cases(profile, runtime, suite_ids=suite_ids)
        print(f"Profile {profile.profile_id}: {len(cases)} case(s)")
        for case in cases:
            print(f"- {case.case_id}")
        return 0

    outcomes = run_profile(profile, runtime, suite_ids=suite_ids)
    for outcome in outcomes:
        print(format_outcome_line(outcome))

    counts = count_results(outcomes)
    print(
        f"{len(outcomes)} case(s): {counts['PASS']} passed, "
        f"{counts['FAIL']} failed, {counts['SKIP']} skipped"
    )

    if args.output is not None:
        manifest = {
            "profile_id": profile.profile_id,
            "profile_path": str(profile.source) if profile.source else None,
            "target": profile.target.name,
            "backend": args.backend,
            "suites": [s.suite_id for s in profile.suites if not suite_ids or s.suite_id in suite_ids],
            "devices": [d.name for d in runtime.devices()],
        }
        write_results(args.output, outcomes, profile_id=profile.profile_id, manifest=manifest)

    return overall_rc(outcomes)


if __name__ == "__main__":
    raise SystemExit(main())
