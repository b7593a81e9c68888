"""Tests for StorageCompleter."""

import pytest

from prompt_toolkit.document import Document

from cli.completer import StorageCompleter
from cli.constants import COMMANDS


@pytest.fixture
def completer():
    """Create a StorageCompleter instance."""
    return StorageCompleter()


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """
    Temporary working directory with a few files.

    Returns:
        Path to the directory, which is also the current directory
    """
    (tmp_path / "report.pdf").write_text("content")
    (tmp_path / "readme.txt").write_text("content")
    (tmp_path / ".hidden").write_text("content")
    (tmp_path / "photos").mkdir()
    (tmp_path / "photos" / "cat.jpg").write_text("content")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def get_completions_list(completer, text):
    """Helper to get list of completion texts from completer."""
    doc = Document(text, len(text))
    return [c.text for c in completer.get_completions(doc, None)]


class TestCommandCompletion:

    def test_empty_input_shows_all_commands(self, completer):
        assert get_completions_list(completer, "") == COMMANDS

    def test_partial_command_filters(self, completer):
        assert get_completions_list(completer, "d") == ["download", "delete"]

    def test_command_completion_case_insensitive(self, completer):
        assert get_completions_list(completer, "UP") == ["upload"]


class TestPathCompletion:

    def test_upload_lists_current_directory(self, completer, work_dir):
        assert get_completions_list(completer, "upload ") == ["photos/", "readme.txt", "report.pdf"]

    def test_partial_name_filters(self, completer, work_dir):
        assert get_completions_list(completer, "upload rep") == ["report.pdf"]

    def test_descends_into_directories(self, completer, work_dir):
        assert get_completions_list(completer, "upload photos/") == ["photos/cat.jpg"]

    def test_hidden_files_need_dot_prefix(self, completer, work_dir):
        assert ".hidden" not in get_completions_list(completer, "upload ")
        assert get_completions_list(completer, "upload .h") == [".hidden"]

    def test_excludes_already_typed_files(self, completer, work_dir):
        assert "report.pdf" not in get_completions_list(completer, "upload report.pdf ")

    def test_options_not_completed(self, completer, work_dir):
        assert get_completions_list(completer, "upload --col") == []

    def test_other_commands_have_no_path_completion(self, completer, work_dir):
        assert get_completions_list(completer, "delete ") == []

    def test_missing_directory_yields_nothing(self, completer, work_dir):
        assert get_completions_list(completer, "upload nowhere/x") == []
