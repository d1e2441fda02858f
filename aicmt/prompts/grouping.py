"""Grouping Prompt - Ask the model to sort diff units into logical commits."""

from typing import Sequence

from aicmt.git.diff_processor import compress_large_new_files
from aicmt.git.hunks import DiffUnit

GROUPING_SYSTEM_PROMPT = """You split a working tree diff into a short series of focused git commits.

You read every change unit, decide which units belong to the same logical change, and write one conventional commit message per group. You answer with JSON only."""


class GroupingPromptBuilder:
    """Builds the prompt sent to the grouping oracle."""

    def __init__(self, max_subject_length: int = 72):
        self.max_subject_length = max_subject_length

    def build(self, units: Sequence[DiffUnit], full_diff: str, instructions: str = "") -> str:
        sections = [
            self._task_section(),
            self._catalog_section(units),
            self._diff_section(full_diff),
            self._instructions_section(instructions),
            self._output_section(),
        ]
        return "\n\n".join(filter(None, sections))

    def _task_section(self) -> str:
        return """Group the change units below into commits.

- Each commit does one thing: a feature, a fix, a refactor, a docs change.
- Units from one file may go into different commits when they are unrelated.
- Order the commits so that each one makes sense on top of the previous ones.
- Fewer, coherent commits beat many tiny ones."""

    def _catalog_section(self, units: Sequence[DiffUnit]) -> str:
        lines = ["<units>"]
        for unit in units:
            lines.append(f"id: {unit.id}")
            lines.append(f"file: {unit.file}")
            if unit.summary:
                lines.append("summary:")
                lines.extend(f"  {line}" for line in unit.summary.split('\n'))
            lines.append("")
        lines.append("</units>")
        return "\n".join(lines)

    def _diff_section(self, full_diff: str) -> str:
        if not full_diff.strip():
            return ""
        return f"<diff>\n{compress_large_new_files(full_diff).rstrip()}\n</diff>"

    def _instructions_section(self, instructions: str) -> str:
        if not instructions.strip():
            return ""
        return f"""<project-rules>
Commit messages must follow these project conventions:
{instructions.strip()}
</project-rules>"""

    def _output_section(self) -> str:
        return f"""<output>
Reply with ONLY a JSON array, in commit order:

[
  {{"ids": ["path/to/file:1", "other/file:2"], "message": "type(scope): subject"}}
]

- Use every unit id exactly once, spelled exactly as listed.
- "message" is a full commit message; the subject is at most {self.max_subject_length} characters.
- No markdown and no text outside the JSON.
</output>"""
