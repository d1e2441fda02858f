"""
Tests for CLI output formatting.

Run with:
    pytest tests/test_display.py -v
    pytest tests/test_display.py -v -s   # see actual terminal output
"""

import re

import pytest

from aicmt.errors import ApplyError, RollbackError
from aicmt.git import parse_diff
from aicmt.git.diff_processor import ProcessedDiff
from aicmt.cli.main import _display_file_list
from aicmt.cli.split import format_plan, _report_apply_failure, _report_rollback_failure
from aicmt.output import print_commit_message, print_verbose
from aicmt.split import SplitPlan, UnitGroup

ANSI_RE = re.compile(r'\033\[[0-9;]*m')


@pytest.fixture
def strip_ansi():
    """Return a function that removes ANSI escape codes."""
    def _strip(text: str) -> str:
        return ANSI_RE.sub('', text)
    return _strip


@pytest.fixture
def make_processed():
    """Return a factory that builds ProcessedDiff from a file list."""
    def _make(file_details, filtered=0):
        return ProcessedDiff(
            summary="",
            detailed_diff="",
            total_files=len(file_details) + filtered,
            included_files=len(file_details),
            filtered_files=filtered,
            file_details=file_details,
        )
    return _make


# ---------------------------------------------------------------------------
# File list display
# ---------------------------------------------------------------------------

class TestDisplayFileList:
    """Output from _display_file_list()."""

    def test_small_list_shows_all(self, capsys, make_processed):
        p = make_processed([
            ("src/utils/validator.py", 15, 3),
            ("tests/test_validator.py", 22, 0),
        ])
        _display_file_list(p, 8)
        out = capsys.readouterr().out

        assert "Staged changes:" in out
        assert "src/utils/validator.py (+15 -3)" in out
        assert "tests/test_validator.py (+22 -0)" in out
        assert "..." not in out

    def test_large_list_collapses(self, capsys, make_processed):
        p = make_processed([(f"src/mod_{i}.py", 10 + i, i) for i in range(12)])
        _display_file_list(p, 8)
        out = capsys.readouterr().out

        assert "src/mod_7.py" in out
        assert "src/mod_8.py" not in out
        assert "... and 4 more files" in out

    def test_shows_filtered_count(self, capsys, make_processed):
        _display_file_list(make_processed([("src/app.py", 5, 2)], filtered=3), 8)
        assert "3 noise files filtered" in capsys.readouterr().out

    def test_empty_details_prints_nothing(self, capsys, make_processed):
        _display_file_list(make_processed([]), 8)
        assert capsys.readouterr().out == ""


# ---------------------------------------------------------------------------
# Commit message display
# ---------------------------------------------------------------------------

class TestPrintCommitMessage:

    def test_subject_with_body(self, capsys, strip_ansi):
        print_commit_message("feat(auth): add JWT token refresh\n\n- refresh before expiry")
        out = strip_ansi(capsys.readouterr().out)

        assert "feat(auth): add JWT token refresh" in out
        assert "- refresh before expiry" in out

    def test_has_rules(self, capsys, strip_ansi):
        print_commit_message("chore: update dependencies")
        lines = [l for l in strip_ansi(capsys.readouterr().out).split("\n") if l.strip()]

        assert set(lines[0]) <= {"─", "-"}
        assert set(lines[-1]) <= {"─", "-"}
        assert len(lines[0]) == len("chore: update dependencies")


class TestPrintVerbose:

    def test_every_line_indented(self, capsys, strip_ansi):
        print_verbose("one\ntwo")
        assert strip_ansi(capsys.readouterr().out) == "  one\n  two\n"


# ---------------------------------------------------------------------------
# Split plan and failure reports
# ---------------------------------------------------------------------------

class TestFormatPlan:

    def test_lists_commits_files_and_hunks(self, two_file_diff, strip_ansi):
        plan = SplitPlan(
            units=parse_diff(two_file_diff),
            groups=[
                UnitGroup("fix(a): correct b", ["a.ts:1"]),
                UnitGroup("feat(b): import y\n\n- needed by x", ["a.ts:2", "b.ts:1"]),
            ],
        )
        out = strip_ansi(format_plan(plan))

        assert "1. fix(a): correct b" in out
        assert "- a.ts (hunks 1)" in out
        assert "2. feat(b): import y" in out
        assert "- needed by x" in out
        assert "- b.ts (hunks 1)" in out
        assert out.index("1. fix") < out.index("2. feat")

    def test_whole_file_label(self, strip_ansi):
        raw = "diff --git a/run.sh b/run.sh\nold mode 100644\nnew mode 100755\n"
        plan = SplitPlan(units=parse_diff(raw), groups=[UnitGroup("chore: make run.sh executable", ["run.sh:1"])])
        assert "- run.sh (whole file)" in strip_ansi(format_plan(plan))


class TestFailureReports:

    def test_rolled_back(self, capsys, strip_ansi):
        error = ApplyError("Group 2/3 failed to stage: patch failed", group_number=2, step="stage",
                           checkpoint="abc123def4567890", rolled_back=True, commits_undone=1)
        _report_apply_failure(error)
        captured = capsys.readouterr()

        assert "patch failed" in captured.err
        assert "Rolled back 1 commit(s)" in strip_ansi(captured.out)
        assert "abc123def456" in captured.out

    def test_nothing_committed(self, capsys, strip_ansi):
        error = ApplyError("Group 1/3 failed to stage: nope", group_number=1, step="stage", checkpoint="abc")
        _report_apply_failure(error)
        assert "No commits were created" in strip_ansi(capsys.readouterr().out)

    def test_rollback_failure_names_checkpoint(self, capsys, strip_ansi):
        apply_error = ApplyError("Group 3/3 failed to commit: hook", group_number=3, step="commit", checkpoint="c0ffee")
        error = RollbackError("Rollback to c0ffee failed after 2 commit(s): locked\nRestore manually with: git reset --mixed c0ffee",
                              checkpoint="c0ffee", commits_attempted=2, commits_rolled_back=0, apply_error=apply_error)
        _report_rollback_failure(error)
        captured = capsys.readouterr()
        out = strip_ansi(captured.out)

        assert "hook" in captured.err
        assert "Checkpoint: c0ffee" in out
        assert "git reset --mixed c0ffee" in out
        assert "2 commit(s) were created and 0 rolled back" in out
