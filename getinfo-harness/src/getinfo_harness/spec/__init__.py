"""Suite profile loading and validation (YAML + JSON Schema)."""

from __future__ import annotations

from getinfo_harness.spec.profile_loader import (
    DEFAULT_PROFILE_PATH,
    ProfileValidationError,
    SuiteConfig,
    SuiteProfile,
    load_profile,
    parse_profile,
)

__all__ = [
    "DEFAULT_PROFILE_PATH",
    "ProfileValidationError",
    "SuiteConfig",
    "SuiteProfile",
    "load_profile",
    "parse_profile",
]
