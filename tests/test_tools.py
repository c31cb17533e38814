import os

import pytest
from unittest.mock import Mock

from grabber_validation.process import Completed, TimedOut
from grabber_validation.tools import CommandFileValidator, ListingsTools, has_output


@pytest.fixture
def executor():
    executor = Mock()
    executor.run.return_value = Completed(0)
    return executor


@pytest.fixture
def tools():
    return ListingsTools(cat_command="tv_cat", sort_command="tv_sort", diff_command="diff")


class TestListingsTools:
    def test_default_commands_from_environment(self, monkeypatch):
        monkeypatch.setenv("GRABBER_VALIDATION_TV_SORT", "/opt/xmltv/tv_sort")
        monkeypatch.delenv("GRABBER_VALIDATION_TV_CAT", raising=False)
        tools = ListingsTools()
        assert tools.sort_command == "/opt/xmltv/tv_sort"
        assert tools.cat_command == "tv_cat"

    def test_cat_file(self, executor, tools):
        assert tools.cat_file(executor, "a.xml", "/dev/null", "6.log") is True
        executor.run.assert_called_once_with("tv_cat a.xml > /dev/null 2>6.log")

    def test_cat_files_failure(self, executor, tools):
        executor.run.return_value = Completed(1)
        assert tools.cat_files(executor, "a.xml", "b.xml", "ab.xml", "5.log") is False
        executor.run.assert_called_once_with("tv_cat a.xml b.xml > ab.xml 2>5.log")

    def test_paths_are_quoted(self, executor, tools):
        tools.cat_file(executor, "my listings.xml", "/dev/null", "6.log")
        executor.run.assert_called_once_with("tv_cat 'my listings.xml' > /dev/null 2>6.log")

    def test_sort_file_clean(self, executor, tools, tmp_path):
        log = tmp_path / "sort.log"
        log.write_text("")
        assert tools.sort_file(executor, "a.xml", "a.sorted.xml", str(log)) is True
        executor.run.assert_called_once_with(
            f"tv_sort --duplicate-error a.xml > a.sorted.xml 2>{log}"
        )

    def test_sort_file_stderr_is_failure(self, executor, tools, tmp_path):
        log = tmp_path / "sort.log"
        log.write_text("overlapping programmes\n")
        assert tools.sort_file(executor, "a.xml", "a.sorted.xml", str(log)) is False

    def test_sort_file_plain_mode_ignores_stderr(self, executor, tools, tmp_path):
        log = tmp_path / "sort.log"
        log.write_text("warning\n")
        assert (
            tools.sort_file(executor, "a.xml", "s.xml", str(log), duplicate_error=False)
            is True
        )
        executor.run.assert_called_once_with(f"tv_sort a.xml > s.xml 2>{log}")

    def test_sort_file_nonzero_exit(self, executor, tools, tmp_path):
        executor.run.return_value = Completed(2)
        log = tmp_path / "sort.log"
        assert tools.sort_file(executor, "a.xml", "s.xml", str(log)) is False

    def test_compare_files(self, executor, tools):
        assert tools.compare_files(executor, "a.xml", "b.xml", "ab.diff") is True
        executor.run.assert_called_once_with("diff a.xml b.xml > ab.diff")

    def test_compare_files_differ(self, executor, tools):
        executor.run.return_value = Completed(1)
        assert tools.compare_files(executor, "a.xml", "b.xml") is False


class TestCommandFileValidator:
    def test_valid_file(self, executor):
        validator = CommandFileValidator(executor, command="tv_validate_file")
        assert validator("out/fake_1_2.xml") == []
        executor.run.assert_called_once_with(
            "tv_validate_file out/fake_1_2.xml > out/fake_1_2.validate.log 2>&1"
        )

    def test_invalid_file(self, executor):
        executor.run.return_value = Completed(1)
        validator = CommandFileValidator(executor, command="tv_validate_file")
        assert validator("fake_1_2.xml") == ["notvalid"]

    def test_timeout_counts_as_invalid(self, executor):
        executor.run.return_value = TimedOut(600)
        validator = CommandFileValidator(executor, command="tv_validate_file")
        assert validator("fake_1_2.xml") == ["notvalid"]


def test_has_output(tmp_path):
    empty = tmp_path / "empty.log"
    empty.write_text("")
    full = tmp_path / "full.log"
    full.write_text("x")

    assert has_output(str(full)) is True
    assert has_output(str(empty)) is False
    assert has_output(os.path.join(str(tmp_path), "missing.log")) is False
