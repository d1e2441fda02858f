"""Git Operations Package"""

from aicmt.git.repository import GitRepository, GitError, FileChange, StagedChanges, WorkingTreeStatus
from aicmt.git.hunks import DiffUnit, DiffParser, parse_diff, group_by_file
from aicmt.git.patch import build_patch, units_by_id
from aicmt.git.diff_processor import (
    DiffProcessor, ProcessedDiff, ProcessorConfig, Priority, compress_large_new_files,
)

__all__ = [
    "GitRepository",
    "GitError",
    "FileChange",
    "StagedChanges",
    "WorkingTreeStatus",
    "DiffUnit",
    "DiffParser",
    "parse_diff",
    "group_by_file",
    "build_patch",
    "units_by_id",
    "DiffProcessor",
    "ProcessedDiff",
    "ProcessorConfig",
    "Priority",
    "compress_large_new_files",
]
