from pathlib import Path

import pytest

from sandbox_harness.configuration import HarnessOptions
from sandbox_harness.console import DEFAULT_POINTLESS_ERRORS


def test_defaults():
    options = HarnessOptions(root_paths=["a", Path("b")])

    assert options.root_paths == (Path("a"), Path("b"))
    assert options.iterations == 1
    assert options.timeout is None
    assert not options.verbose
    assert options.pointless_errors == DEFAULT_POINTLESS_ERRORS
    assert options.listen_logger == ""


@pytest.mark.parametrize("changes", [{"iterations": -1}, {"timeout": 0}, {"timeout": -2.5}])
def test_invalid_values_raise(changes):
    with pytest.raises(ValueError):
        HarnessOptions(**changes)


def test_from_env():
    environ = {
        "SANDBOX_HARNESS_ITERATIONS": "3",
        "SANDBOX_HARNESS_VERBOSE": "yes",
        "SANDBOX_HARNESS_TIMEOUT": "2.5",
        "SANDBOX_HARNESS_PROFILE": "1",
        "SANDBOX_HARNESS_COLOR": "off",
    }
    options = HarnessOptions.from_env(["tests"], environ)

    assert options.root_paths == (Path("tests"),)
    assert options.iterations == 3
    assert options.verbose
    assert options.timeout == 2.5
    assert options.profile_memory
    assert not options.color
    assert options.warnings == ()


def test_from_env_empty():
    options = HarnessOptions.from_env([], {})

    assert options.iterations == 1
    assert not options.verbose
    assert options.timeout is None


def test_from_env_invalid_numbers_fall_back():
    environ = {"SANDBOX_HARNESS_ITERATIONS": "many", "SANDBOX_HARNESS_TIMEOUT": "-1"}
    options = HarnessOptions.from_env([], environ)

    assert options.iterations == 1
    assert options.timeout is None
    assert len(options.warnings) == 2
    assert "SANDBOX_HARNESS_ITERATIONS" in options.warnings[0]


def test_with_overrides():
    options = HarnessOptions().with_overrides(iterations=0, verbose=True)

    assert options.iterations == 0
    assert options.verbose
