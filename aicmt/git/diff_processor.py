"""Diff Processor - Transform git diffs into LLM-friendly context."""

from dataclasses import dataclass, field
from enum import IntEnum
import re

from aicmt.errors import ParseError
from aicmt.git.hunks import group_by_file, parse_diff
from aicmt.git.patch import build_patch
from aicmt.git.repository import FileChange, StagedChanges

# New files above this many added lines are cut down to head + tail
LARGE_NEW_FILE_LINE_LIMIT = 400
LARGE_NEW_FILE_HEAD_LINES = 120
LARGE_NEW_FILE_TAIL_LINES = 60


class Priority(IntEnum):
    """File priority for inclusion in LLM context. Lower is more important."""
    SOURCE = 1
    TEST = 2
    CONFIG = 3
    DOCS = 4
    NOISE = 99


@dataclass
class ProcessedDiff:
    """LLM-ready representation of staged changes."""
    summary: str
    detailed_diff: str
    total_files: int = 0
    included_files: int = 0
    filtered_files: int = 0
    truncated: bool = False
    file_details: list[tuple[str, int, int]] = field(default_factory=list)

    @property
    def estimated_tokens(self) -> int:
        """Rough token estimate (~4 chars per token)."""
        return (len(self.summary) + len(self.detailed_diff)) // 4


@dataclass
class ProcessorConfig:
    """Tunable settings for diff processing."""
    max_tokens: int = 3000
    max_lines_per_file: int = 200


def _split_entries(diff: str) -> list[list[str]]:
    """Split a diff into per-file line blocks, keeping any preamble as-is."""
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in diff.split('\n'):
        if line.startswith('diff --git ') and current:
            blocks.append(current)
            current = []
        current.append(line)
    if current:
        blocks.append(current)
    return blocks


def _is_new_file(block: list[str]) -> bool:
    return any(line.startswith('new file mode') or line.startswith('index 0000000..') for line in block)


def compress_large_new_files(diff: str) -> str:
    """Keep only the head and tail of newly added files that are very long."""
    if not diff.strip():
        return diff

    trailing_newline = diff.endswith('\n')
    compressed = []
    for block in _split_entries(diff[:-1] if trailing_newline else diff):
        hunk_start = next((i for i, line in enumerate(block) if line.startswith('@@')), -1)
        if not _is_new_file(block) or hunk_start == -1:
            compressed.extend(block)
            continue

        header, body = block[:hunk_start + 1], block[hunk_start + 1:]
        added = sum(1 for line in body if line.startswith('+') and not line.startswith('+++'))
        head = body[:LARGE_NEW_FILE_HEAD_LINES]
        tail = body[-LARGE_NEW_FILE_TAIL_LINES:]
        if added <= LARGE_NEW_FILE_LINE_LIMIT or len(head) + len(tail) >= len(body):
            compressed.extend(block)
            continue

        omitted = len(body) - len(head) - len(tail)
        compressed.extend(header + head)
        compressed.append(f"+... [truncated {omitted} lines from large new file] ...")
        compressed.extend(tail)

    result = '\n'.join(compressed)
    return result + '\n' if trailing_newline else result


class DiffProcessor:
    """
    Transforms raw git diff into LLM-friendly context.

    Files are classified by path, noise (lock files, build output) is
    dropped, and full per-file diffs are included by priority until the
    token budget runs out. The file summary is always sent.
    """

    # First match wins; anything unmatched is source.
    PATH_CATEGORIES: list[tuple[Priority, str]] = [
        (Priority.NOISE,
         r'(^|/)(package-lock\.json|yarn\.lock|pnpm-lock\.yaml|poetry\.lock'
         r'|Cargo\.lock|Gemfile\.lock|composer\.lock|\.DS_Store)$'
         r'|\.(min\.js|min\.css|map|pyc|class)$'
         r'|(^|/)(dist|build|node_modules|vendor|\.?venv|\.idea|\.vscode|__pycache__)/'
         r'|\.egg-info/'),
        (Priority.TEST,
         r'(^|/)(tests?|specs?|__tests__)/|[._](test|spec)\.|Tests?\.java$'),
        (Priority.DOCS,
         r'\.(md|rst|txt)$|(^|/)docs/|README|CHANGELOG|LICENSE'),
        (Priority.CONFIG,
         r'\.(json|ya?ml|toml|ini)$|\.env|\.config\.|(^|/)(config|settings)/'
         r'|(^|/)(Makefile|Dockerfile)$|docker-compose'),
    ]

    SECTION_LABELS = {
        Priority.SOURCE: "Source",
        Priority.TEST: "Tests",
        Priority.CONFIG: "Config",
        Priority.DOCS: "Docs",
    }

    def __init__(self, config: ProcessorConfig | None = None):
        self.config = config or ProcessorConfig()
        self._categories = [
            (priority, re.compile(pattern, re.IGNORECASE))
            for priority, pattern in self.PATH_CATEGORIES
        ]

    def process(self, changes: StagedChanges) -> ProcessedDiff:
        """Main entry point: staged changes -> LLM-ready context."""
        classified = [(f, self._get_priority(f.path)) for f in changes.files]
        kept = [(f, p) for f, p in classified if p != Priority.NOISE]
        noise_count = len(classified) - len(kept)

        kept.sort(key=lambda item: (item[1], -item[0].total_changes))

        detailed_diff, included, truncated = self._build_detailed_diff(kept, changes.diff)

        return ProcessedDiff(
            summary=self._build_summary(kept, noise_count),
            detailed_diff=detailed_diff,
            total_files=len(changes.files),
            included_files=included,
            filtered_files=noise_count,
            truncated=truncated,
            file_details=[(f.path, f.additions, f.deletions) for f, _ in kept],
        )

    def _get_priority(self, path: str) -> Priority:
        for priority, pattern in self._categories:
            if pattern.search(path):
                return priority
        return Priority.SOURCE

    def _build_summary(self, files: list[tuple[FileChange, Priority]], noise_count: int) -> str:
        lines = ["FILES CHANGED:"]
        current = None

        for file, priority in files:
            if priority != current:
                current = priority
                lines.append(f"\n[{self.SECTION_LABELS.get(priority, 'Other')}]")
            lines.append(f"  {file.path} (+{file.additions} -{file.deletions})")

        if noise_count > 0:
            lines.append(f"\n[Filtered: {noise_count} files (lock files, generated code)]")

        return "\n".join(lines)

    def _build_detailed_diff(self, files: list[tuple[FileChange, Priority]], full_diff: str) -> tuple[str, int, bool]:
        """Returns: (diff_text, files_included, was_truncated)"""
        if not full_diff.strip():
            return "", 0, False

        file_diffs = self._split_diff_by_file(compress_large_new_files(full_diff))
        parts = []
        tokens_used = 0
        truncated = False

        for file, _ in files:
            if file.path not in file_diffs:
                continue

            file_diff = self._truncate_file_diff(file_diffs[file.path], file.path)
            diff_tokens = len(file_diff) // 4
            if tokens_used + diff_tokens > self.config.max_tokens:
                truncated = True
                break

            parts.append(file_diff)
            tokens_used += diff_tokens

        return "\n".join(parts), len(parts), truncated

    def _split_diff_by_file(self, diff: str) -> dict[str, str]:
        try:
            units = parse_diff(diff)
        except ParseError:
            return {}
        return {path: build_patch(file_units).rstrip('\n') for path, file_units in group_by_file(units).items()}

    def _truncate_file_diff(self, diff: str, path: str) -> str:
        lines = diff.split('\n')
        limit = self.config.max_lines_per_file
        if len(lines) <= limit:
            return diff

        kept = lines[:limit]
        kept.append(f"\n... [{len(lines) - limit} more lines truncated from {path}]")
        return '\n'.join(kept)
