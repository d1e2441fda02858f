"""Transactional Apply Engine - Commit groups in order, or not at all.

Each group is staged into the index with ``git apply --cached`` and then
committed. If any step fails after at least one commit was made, the
repository is reset to the checkpoint taken before the first group, so a
failed run never leaves a partial series of commits behind.
"""

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from aicmt.errors import ApplyError, RollbackError
from aicmt.git.repository import GitError


class StagingRepository(Protocol):
    """The repository operations the engine needs."""

    def stage_only(self, patch: str) -> None: ...

    def commit(self, message: str) -> str: ...

    def reset_to_revision(self, revision: str) -> None: ...

    def current_revision(self) -> str: ...


@dataclass(frozen=True)
class Checkpoint:
    """The revision to restore when a multi-commit run fails."""
    revision: str
    label: str = "HEAD"

    @property
    def short(self) -> str:
        return self.revision[:12]

    @classmethod
    def capture(cls, repo: StagingRepository) -> "Checkpoint":
        return cls(revision=repo.current_revision())


@dataclass(frozen=True)
class GroupPatch:
    """A reconstructed patch and the message to commit it with."""
    patch: str
    message: str


# (commit_number, total, group) after each successful commit
CommitCallback = Callable[[int, int, GroupPatch], None]


def _rollback(repo: StagingRepository, checkpoint: Checkpoint, error: ApplyError, committed: int) -> None:
    try:
        repo.reset_to_revision(checkpoint.revision)
    except (GitError, OSError) as e:
        raise RollbackError(
            f"Rollback to {checkpoint.short} failed after {committed} commit(s): {e}\n"
            f"Restore manually with: git reset --mixed {checkpoint.revision}",
            checkpoint=checkpoint.revision,
            commits_attempted=committed,
            commits_rolled_back=0,
            apply_error=error,
        ) from error

    error.rolled_back = True
    error.commits_undone = committed


def apply_groups(
    repo: StagingRepository,
    groups: Sequence[GroupPatch],
    checkpoint: Checkpoint,
    on_commit: CommitCallback | None = None,
) -> int:
    """Stage and commit every group in order. Returns the number of commits."""
    total = len(groups)
    committed = 0

    for number, group in enumerate(groups, 1):
        step = "stage"
        try:
            repo.stage_only(group.patch)
            step = "commit"
            repo.commit(group.message)
        except (GitError, OSError) as e:
            error = ApplyError(
                f"Group {number}/{total} failed to {step}: {e}",
                group_number=number,
                step=step,
                checkpoint=checkpoint.revision,
            )
            if committed:
                _rollback(repo, checkpoint, error, committed)
            raise error from e
        except KeyboardInterrupt:
            if committed:
                interrupted = ApplyError(
                    f"Group {number}/{total} interrupted during {step}",
                    group_number=number,
                    step=step,
                    checkpoint=checkpoint.revision,
                )
                _rollback(repo, checkpoint, interrupted, committed)
            raise

        committed += 1
        if on_commit:
            on_commit(number, total, group)

    return committed
