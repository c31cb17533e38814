import json
import sys

import pytest
from unittest.mock import patch

from grabber_validation.checks.base import ValidationError
from grabber_validation.cli import main
from grabber_validation.context import ValidationReport
from grabber_validation.exceptions import ChildTerminatedError


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("grabber_validation.cli.setup_logging") as mock_setup:
        yield mock_setup


def _report(*codes):
    return ValidationReport(
        name="tv_grab_fake",
        errors=[ValidationError(c) for c in codes],
        aborted=False,
        command_log="out/tv_grab_fake_commands.log",
    )


@patch("grabber_validation.cli.run_validation")
def test_validate_pass(mock_run, capsys):
    mock_run.return_value = _report()

    assert main(["validate", "./tv_grab_fake", "fake.conf"]) == 0
    args, kwargs = mock_run.call_args
    assert args[0] == "tv_grab_fake"
    assert args[1] == "./tv_grab_fake"
    assert args[2] == "fake.conf"
    assert args[3].endswith("tv_grab_fake_")
    assert kwargs == {"share_dir": None, "use_cache": False}
    assert capsys.readouterr().out == ""


@patch("grabber_validation.cli.run_validation")
def test_validate_fail_prints_codes(mock_run, capsys):
    mock_run.return_value = _report("nobaseline", "notquiet")

    assert main(
        ["validate", "perl -Ilib tv_grab_fake", "fake.conf", "--name", "fake",
         "--prefix", "/tmp/fake_", "--share", "blib/share", "--cache"]
    ) == 1
    args, kwargs = mock_run.call_args
    assert args[0] == "fake"
    assert args[3] == "/tmp/fake_"
    assert kwargs == {"share_dir": "blib/share", "use_cache": True}
    assert capsys.readouterr().out.splitlines() == ["nobaseline", "notquiet"]


@patch("grabber_validation.cli.run_validation")
def test_validate_json(mock_run, capsys):
    mock_run.return_value = _report("sorterror")

    assert main(["validate", "tv_grab_fake", "fake.conf", "--json"]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out["codes"] == ["sorterror"]
    assert out["passed"] is False


@patch("grabber_validation.cli.run_validation")
def test_validate_interrupted(mock_run, capsys):
    mock_run.side_effect = ChildTerminatedError("tv_grab_fake --version", 2)

    assert main(["validate", "tv_grab_fake", "fake.conf"]) == 2
    assert "signal 2" in capsys.readouterr().err


@patch("grabber_validation.cli.configure_grabber")
def test_configure(mock_configure):
    mock_configure.return_value = False
    assert main(["configure", "tv_grab_fake", "fake.conf"]) == 1
    mock_configure.assert_called_once_with("tv_grab_fake", "fake.conf")


def test_log_level_passed(no_logging_setup):
    with patch("grabber_validation.cli.configure_grabber", return_value=True):
        assert main(["--log-level", "DEBUG", "configure", "tv_grab_fake", "f.conf"]) == 0
    no_logging_setup.assert_called_once_with(level="DEBUG", stream=sys.stderr)


@patch("grabber_validation.cli.run_validation")
def test_validate_list_stages(mock_run, capsys):
    mock_run.return_value = _report()

    assert main(["validate", "tv_grab_fake", "fake.conf", "--list-stages"]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    lines = captured.err.splitlines()
    assert lines[0].split() == ["10", "param_check"]
    assert lines[-1].split() == ["110", "additivity"]
