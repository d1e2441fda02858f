"""Shared fixtures: sample diffs and throwaway git repositories."""

import shutil
import subprocess

import pytest

from aicmt.git import GitRepository


TWO_FILE_DIFF = (
    "diff --git a/a.ts b/a.ts\n"
    "index 1111111..2222222 100644\n"
    "--- a/a.ts\n"
    "+++ b/a.ts\n"
    "@@ -1,3 +1,3 @@\n"
    " const a = 1;\n"
    "-const b = 2;\n"
    "+const b = 3;\n"
    " const c = 4;\n"
    "@@ -10,3 +10,4 @@ function f() {\n"
    " function f() {\n"
    "+  return 1;\n"
    " }\n"
    " export { f };\n"
    "diff --git a/b.ts b/b.ts\n"
    "index 3333333..4444444 100644\n"
    "--- a/b.ts\n"
    "+++ b/b.ts\n"
    "@@ -1,2 +1,3 @@\n"
    " import x from \"x\";\n"
    "+import y from \"y\";\n"
    " x();\n"
)


@pytest.fixture
def two_file_diff():
    """a.ts with two hunks, b.ts with one."""
    return TWO_FILE_DIFF


def _git(cwd, *args):
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def git_repo(tmp_path):
    """A git repository with one commit; skipped when git is missing."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    _git(repo_dir, "init", "-q")
    _git(repo_dir, "config", "user.email", "test@example.com")
    _git(repo_dir, "config", "user.name", "Test User")
    _git(repo_dir, "config", "commit.gpgsign", "false")

    (repo_dir / "README.md").write_text("# Test Repo\n")
    _git(repo_dir, "add", "README.md")
    _git(repo_dir, "commit", "-q", "-m", "Initial commit")
    return repo_dir


@pytest.fixture
def repo(git_repo):
    return GitRepository(git_repo)


@pytest.fixture
def git_log(git_repo):
    """Return a function listing commit subjects, newest first."""
    def _log():
        result = subprocess.run(
            ["git", "log", "--format=%s"], cwd=git_repo, check=True, capture_output=True, text=True,
        )
        return result.stdout.strip().split("\n")
    return _log
