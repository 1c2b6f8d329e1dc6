from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
import pytest

from getinfo_harness.engine.capability import CapabilityRequirement
from getinfo_harness.spec.profile_loader import (
    DEFAULT_PROFILE_PATH,
    ProfileValidationError,
    load_profile,
    load_schema,
    load_yaml_or_json,
    parse_profile,
    validate_against_schema,
)
from getinfo_harness.targets.queue import DeviceInfo, QueueFlag, QueueInfo


def _minimal() -> Dict[str, Any]:
    return {
        "profile_id": "mini",
        "target": "queue",
        "suites": [{"suite_id": "basic", "kinds": ["CONTEXT", "FLAGS"]}],
    }


def test_profile_schema_is_valid_draft_2020_12() -> None:
    jsonschema.Draft202012Validator.check_schema(load_schema())


def test_default_profile_loads() -> None:
    profile = load_profile()
    assert profile.profile_id == "queue_getinfo"
    assert profile.target.name == "queue"
    assert profile.source == DEFAULT_PROFILE_PATH
    assert [s.suite_id for s in profile.suites] == ["queue_info", "device_queue_info", "queue_info_errors"]

    basic = profile.suite("queue_info")
    assert basic.kinds == (
        QueueInfo.CONTEXT,
        QueueInfo.DEVICE,
        QueueInfo.FLAGS,
        QueueInfo.REFERENCE_COUNT,
        QueueInfo.EMPTY,
    )
    assert basic.validate_values is True
    assert basic.flags == 0
    assert basic.capability is None

    on_device = profile.suite("device_queue_info")
    assert len(on_device.kinds) == 7
    assert on_device.validate_values is False
    assert on_device.flags == int(
        QueueFlag.ON_DEVICE | QueueFlag.ON_DEVICE_DEFAULT | QueueFlag.OUT_OF_ORDER_EXEC_MODE_ENABLE
    )
    assert on_device.capability == CapabilityRequirement(DeviceInfo.QUEUE_ON_DEVICE_PROPERTIES)

    errors = profile.suite("queue_info_errors")
    assert errors.error_matrix is True
    assert errors.kinds == ()

    with pytest.raises(KeyError):
        profile.suite("nope")


def test_required_bits_are_carried_into_the_requirement() -> None:
    data = _minimal()
    data["suites"][0]["requires_capability"] = {"info": "QUEUE_ON_HOST_PROPERTIES", "required_bits": 2}
    suite = parse_profile(data).suites[0]
    assert suite.capability == CapabilityRequirement(DeviceInfo.QUEUE_ON_HOST_PROPERTIES, required_bits=2)


@pytest.mark.parametrize(
    "mutate,match",
    [
        (lambda d: d["suites"][0].update(kinds=["CONTEXT", "NATIVE_HANDLE"]), "unknown queue info kind"),
        (lambda d: d["suites"][0].update(queue_flags=["LOW_LATENCY"]), "unknown queue flag"),
        (
            lambda d: d["suites"][0].update(requires_capability={"info": "MAX_COMPUTE_UNITS"}),
            "unknown device info kind",
        ),
        (lambda d: d["suites"][0].update(kinds=["FLAGS", "FLAGS"]), "duplicate kinds"),
        (lambda d: d["suites"].append(copy.deepcopy(d["suites"][0])), "duplicate suite_id"),
        (lambda d: d.update(target="kernel"), "unknown info target"),
    ],
)
def test_semantic_errors_are_reported(mutate, match: str) -> None:  # type: ignore[no-untyped-def]
    data = _minimal()
    mutate(data)
    with pytest.raises(ProfileValidationError, match=match):
        parse_profile(data)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d.pop("target"),
        lambda d: d.update(suites=[]),
        lambda d: d["suites"][0].pop("kinds"),
        lambda d: d["suites"][0].update(error_matrix=False, kinds=None),
        lambda d: d["suites"][0].update(kinds=["not a name"]),
        lambda d: d["suites"][0].update(retries=3),
        lambda d: d["suites"][0].update(requires_capability={"info": "QUEUE_ON_DEVICE_PROPERTIES", "required_bits": 0}),
    ],
)
def test_schema_errors_are_reported(mutate) -> None:  # type: ignore[no-untyped-def]
    data = _minimal()
    mutate(data)
    with pytest.raises(ProfileValidationError):
        parse_profile(data, where="inline")


def test_error_matrix_only_suite_is_valid() -> None:
    data = _minimal()
    data["suites"] = [{"suite_id": "errors", "error_matrix": True}]
    suite = parse_profile(data).suites[0]
    assert suite.error_matrix is True
    assert suite.kinds == ()


def test_load_json_profile(tmp_path: Path) -> None:
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(_minimal()), encoding="utf-8")
    profile = load_profile(path)
    assert profile.profile_id == "mini"
    assert profile.source == path


def test_loader_rejects_bad_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_yaml_or_json(tmp_path / "missing.yaml")

    txt = tmp_path / "profile.txt"
    txt.write_text("profile_id: x\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported profile file extension"):
        load_yaml_or_json(txt)

    not_obj = tmp_path / "list.yaml"
    not_obj.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ProfileValidationError, match="must be an object"):
        load_yaml_or_json(not_obj)


def test_schema_errors_are_listed_by_path_and_capped() -> None:
    schema = {"type": "object", "additionalProperties": {"type": "integer"}}
    instance = {f"k{i:02d}": "x" for i in range(25)}
    with pytest.raises(ProfileValidationError) as excinfo:
        validate_against_schema(instance, schema, where="p.yaml")

    lines = str(excinfo.value).splitlines()
    assert len(lines) == 21
    assert lines[0].startswith("- p.yaml:k00: ")
    assert lines[-1] == "... and 5 more"
