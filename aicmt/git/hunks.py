"""Diff Parser - Split a unified diff into independently addressable units.

Each hunk of a ``git diff`` becomes a DiffUnit identified by
``<file>:<index>``. The units keep their literal text so that any subset
can later be stitched back into a patch (see ``aicmt.git.patch``).
"""

from dataclasses import dataclass
import re

from aicmt.errors import ParseError

# Bounds for DiffUnit.summary, which only feeds display and the oracle prompt
SUMMARY_MAX_LINES = 5
SUMMARY_MAX_CHARS = 100

_FILE_DECL_RE = re.compile(r'^diff --git "?a/(.+?)"? "?b/(.+?)"?$')

# Entries carrying these header lines are never split into hunks: re-applying
# a rename for every group would fail after the first one.
_WHOLE_FILE_MARKERS = ('rename from ', 'rename to ', 'copy from ', 'copy to ')


@dataclass(frozen=True)
class DiffUnit:
    """A single hunk, or a whole file entry that cannot be split."""
    file: str
    index: int
    header: str
    content: tuple[str, ...]
    file_header: tuple[str, ...] = ()
    summary: str = ""

    @property
    def id(self) -> str:
        return f"{self.file}:{self.index}"

    @property
    def is_whole_file(self) -> bool:
        """True for binary, rename, mode-only and other hunkless entries."""
        return self.header.startswith('diff --git ')

    @property
    def additions(self) -> int:
        return sum(1 for line in changed_lines(self.content) if line.startswith('+'))

    @property
    def deletions(self) -> int:
        return sum(1 for line in changed_lines(self.content) if line.startswith('-'))


def changed_lines(lines):
    """Yield the +/- lines inside hunks; entry headers before each ``@@`` are skipped."""
    in_hunk = False
    for line in lines:
        if line.startswith('diff --git '):
            in_hunk = False
        elif line.startswith('@@'):
            in_hunk = True
        elif in_hunk and line[:1] in ('+', '-'):
            yield line


def summarize(lines) -> str:
    """Bounded extract of the added/removed lines of a unit."""
    changes = [line[:SUMMARY_MAX_CHARS] for line in changed_lines(lines)]
    return '\n'.join(changes[:SUMMARY_MAX_LINES])


def _unquote(name: str) -> str:
    # git appends a tab to ---/+++ names containing spaces
    name = name.rstrip('\t')
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        return name[1:-1]
    return name


def extract_path(declaration: str) -> str:
    """'diff --git a/old b/new' -> 'new'"""
    rest = declaration[len('diff --git '):]
    # Unchanged path: 'a/X b/X' splits unambiguously even if X contains ' b/'
    half, odd = divmod(len(rest) - 5, 2)
    if half > 0 and not odd and rest.startswith('a/'):
        old, sep, new = rest[2:2 + half], rest[2 + half:5 + half], rest[5 + half:]
        if sep == ' b/' and old == new:
            return new
    match = _FILE_DECL_RE.match(declaration)
    if match:
        return match.group(2)
    return rest.strip()


def entry_path(header: list[str]) -> str:
    """Path of one file entry, preferring the explicit header lines over the declaration."""
    for line in header:
        if line.startswith('+++ ') and line[4:].rstrip('\t') != '/dev/null':
            name = _unquote(line[4:])
            return name[2:] if name.startswith('b/') else name
        if line.startswith(('rename to ', 'copy to ')):
            return _unquote(line.split(' to ', 1)[1])
    for line in header:
        if line.startswith('--- ') and line[4:].rstrip('\t') != '/dev/null':
            name = _unquote(line[4:])
            return name[2:] if name.startswith('a/') else name
    return extract_path(header[0])


class DiffParser:
    """
    Line scanner over ``git diff`` output.

    Each ``diff --git`` entry is collected as its header lines (everything
    before the first ``@@``) plus its hunks. Entries are turned into units
    once the input ends, so that a path listed twice (a typechange is a
    deletion followed by a creation) can become a single unit.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._entries: list[tuple[list[str], list[list[str]]]] = []

    def parse(self, raw_diff: str) -> list[DiffUnit]:
        self._reset()
        if not raw_diff.strip():
            return []

        # Split on '\n' only: '\r' belongs to CRLF file content
        lines = raw_diff.split('\n')
        if lines[-1] == '':
            lines.pop()

        for line in lines:
            if line.startswith('diff --git '):
                self._entries.append(([line], []))
            elif not self._entries:
                continue  # preamble before the first file entry
            elif line.startswith('@@'):
                self._entries[-1][1].append([line])
            elif self._entries[-1][1]:
                self._entries[-1][1][-1].append(line)
            else:
                self._entries[-1][0].append(line)

        if not self._entries:
            raise ParseError("Input does not look like a git diff (no 'diff --git' entries)")

        by_path: dict[str, list[tuple[list[str], list[list[str]]]]] = {}
        for header, hunks in self._entries:
            by_path.setdefault(entry_path(header), []).append((header, hunks))

        units: list[DiffUnit] = []
        for path, entries in by_path.items():
            units.extend(self._file_units(path, entries))
        self._reset()
        return units

    def _file_units(self, path: str, entries) -> list[DiffUnit]:
        header, hunks = entries[0]
        if len(entries) == 1 and not _is_whole_file(header, hunks):
            file_header = tuple(header)
            return [
                DiffUnit(
                    file=path,
                    index=index,
                    header=hunk[0],
                    content=tuple(hunk),
                    file_header=file_header,
                    summary=summarize(hunk),
                )
                for index, hunk in enumerate(hunks, 1)
            ]

        content: list[str] = []
        for header, hunks in entries:
            content.extend(header)
            for hunk in hunks:
                content.extend(hunk)
        return [DiffUnit(
            file=path,
            index=1,
            header=content[0],
            content=tuple(content),
            summary=summarize(content),
        )]


def _is_whole_file(header: list[str], hunks: list[list[str]]) -> bool:
    if not hunks:
        return True
    return any(line.startswith(_WHOLE_FILE_MARKERS) for line in header)


def parse_diff(raw_diff: str) -> list[DiffUnit]:
    """Parse raw ``git diff`` text into an ordered list of DiffUnits."""
    return DiffParser().parse(raw_diff)


def group_by_file(units) -> dict[str, list[DiffUnit]]:
    """Units keyed by file path, in first-seen order."""
    files: dict[str, list[DiffUnit]] = {}
    for unit in units:
        files.setdefault(unit.file, []).append(unit)
    return files
