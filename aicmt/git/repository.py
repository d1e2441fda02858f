"""Git Repository - Thin wrapper over the git CLI."""

import subprocess
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class FileChange:
    """Represents a single file's changes."""
    path: str
    additions: int
    deletions: int

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions

    @property
    def directory(self) -> str:
        """Extract the top-level directory for scope detection."""
        parts = Path(self.path).parts
        if len(parts) > 1 and parts[0] in ('src', 'lib', 'app'):
            return parts[1]
        return parts[0] if parts else ''


@dataclass
class StagedChanges:
    """Complete picture of what's staged for commit."""
    files: list[FileChange] = field(default_factory=list)
    diff: str = ""

    @property
    def total_files(self) -> int:
        return len(self.files)

    @property
    def is_empty(self) -> bool:
        return len(self.files) == 0


@dataclass
class WorkingTreeStatus:
    """Paths with staged and unstaged (including untracked) changes."""
    staged: list[str] = field(default_factory=list)
    unstaged: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.staged and not self.unstaged

    @property
    def all_files(self) -> list[str]:
        return list(dict.fromkeys(self.staged + self.unstaged))


class GitError(Exception):
    """Raised when git operations fail."""
    pass


class GitRepository:
    """Runs git commands against one working tree."""

    # Pin the output format regardless of user diff config
    DIFF_FLAGS = ('--no-color', '--no-ext-diff', '--src-prefix=a/', '--dst-prefix=b/')

    def __init__(self, path: str | Path | None = None):
        self.root = Path(path or Path.cwd())
        self._verify_git_available()
        self._verify_in_repo()
        self.root = Path(self._run_git('rev-parse', '--show-toplevel').strip())

    def _run_git(self, *args: str, input_text: str | None = None) -> str:
        """Run a git command in the repository and return stdout."""
        try:
            result = subprocess.run(
                ['git', *args],
                cwd=self.root,
                input=input_text,
                capture_output=True,
                text=True,
                check=True,
                encoding='utf-8',
                # Non-UTF-8 bytes survive the diff -> patch round trip
                errors='surrogateescape',
            )
            return result.stdout
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or e.stdout or '').strip()
            raise GitError(f"Git command failed: git {' '.join(args[:3])}\n{detail}")
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_git_available(self) -> None:
        """Fail fast if git isn't available."""
        try:
            self._run_git('--version')
        except GitError:
            raise GitError("Git is not installed or not in PATH")

    def _verify_in_repo(self) -> None:
        """Fail fast if we're not in a git repository."""
        try:
            inside = self._run_git('rev-parse', '--is-inside-work-tree').strip()
        except GitError:
            raise GitError("Not a git repository. Run inside a git project.")
        if inside != 'true':
            raise GitError("Not inside a git work tree")

    # -- status ---------------------------------------------------------------

    def status(self) -> WorkingTreeStatus:
        """Parse 'git status --porcelain=v1 -z'."""
        entries = self._run_git('status', '--porcelain=v1', '-z').split('\0')
        status = WorkingTreeStatus()

        i = 0
        while i < len(entries):
            entry = entries[i]
            i += 1
            if len(entry) < 4:
                continue
            code, path = entry[:2], entry[3:]
            if code[0] in ('R', 'C'):
                i += 1  # the source path follows as its own entry
            if code == '??':
                status.unstaged.append(path)
                continue
            if code[0] != ' ':
                status.staged.append(path)
            if code[1] != ' ':
                status.unstaged.append(path)

        return status

    def untracked_files(self) -> list[str]:
        output = self._run_git('ls-files', '--others', '--exclude-standard', '-z')
        return [path for path in output.split('\0') if path]

    def has_commits(self) -> bool:
        try:
            self._run_git('rev-parse', '--verify', '-q', 'HEAD')
        except GitError:
            return False
        return True

    # -- staging --------------------------------------------------------------

    def stage_all(self) -> None:
        self._run_git('add', '-A')

    def unstage_all(self) -> None:
        if self.has_commits():
            self._run_git('reset', '-q')

    def stage_only(self, patch: str) -> None:
        """Apply a patch to the index only, leaving the working tree alone."""
        if not patch.strip():
            return
        self._run_git('apply', '--cached', '--unidiff-zero', '-', input_text=patch)

    # -- diffs ----------------------------------------------------------------

    def get_staged_changes(self, context_lines: int = 3) -> StagedChanges:
        """Staged files with line counts, plus the staged diff."""
        return StagedChanges(
            files=self._get_staged_files(),
            diff=self._run_git('diff', '--staged', f'-U{context_lines}', *self.DIFF_FLAGS),
        )

    def _get_staged_files(self) -> list[FileChange]:
        """Parse 'git diff --staged --numstat' output."""
        output = self._run_git('diff', '--staged', '--numstat')

        files = []
        for line in output.strip().split('\n'):
            parts = line.split('\t')
            if len(parts) >= 3:
                # Binary files show '-' for additions/deletions
                additions = int(parts[0]) if parts[0] != '-' else 0
                deletions = int(parts[1]) if parts[1] != '-' else 0
                files.append(FileChange(path=parts[2], additions=additions, deletions=deletions))

        return files

    def working_diff(self, context_lines: int = 8, include_untracked: bool = True) -> str:
        """
        Diff of the working tree against HEAD.

        Untracked files are marked intent-to-add for the duration of the diff
        so they show up as new files, then dropped from the index again.
        """
        untracked = self.untracked_files() if include_untracked else []
        if untracked:
            self._run_git('add', '--intent-to-add', '--', *untracked)
        try:
            return self._run_git('diff', f'-U{context_lines}', '--binary', *self.DIFF_FLAGS, 'HEAD')
        finally:
            if untracked:
                self._run_git('reset', '-q', '--', *untracked)

    # -- history --------------------------------------------------------------

    def current_revision(self) -> str:
        try:
            return self._run_git('rev-parse', '--verify', 'HEAD').strip()
        except GitError:
            raise GitError("Repository has no commits yet. Create an initial commit first.")

    def commit(self, message: str) -> str:
        """Commit the index with ``message`` and return the new revision."""
        self._run_git('commit', '-q', '-F', '-', input_text=message)
        return self.current_revision()

    def reset_to_revision(self, revision: str) -> None:
        """Move HEAD and the index to ``revision``; working tree files are kept."""
        self._run_git('reset', '--mixed', '-q', revision)
