"""Prompt Builder - Commit message prompts for a single staged change."""

from dataclasses import dataclass

from aicmt import COMMIT_TYPES
from aicmt.git import ProcessedDiff

# (min_files, bullet_range): wider changes get more bullets
BULLET_RANGES_DETAILED = [
    (15, "6-8"),
    (8, "5-6"),
    (4, "4-5"),
    (0, "2-3"),
]

BULLET_RANGES = [
    (15, "5-6"),
    (8, "4-5"),
    (4, "3-4"),
    (0, "1-2"),
]

CHANGE_SIZE_LABELS = [
    (15, "large"),
    (4, ""),
    (0, "small"),
]

_SUBJECT_PLAIN = "<imperative verb> <what changed>"
_SUBJECT_TYPED = "type(scope): <imperative verb> <what changed>"

_BODY_PLAIN = """\
- <concrete detail taken from the diff>
- <second detail, only if it adds something>"""

_BODY_CONVENTIONAL = """\
- <concrete detail taken from the diff>
- <reason or effect, when it is not obvious>"""

_BODY_DETAILED = """\
- <implementation detail>
- <reason for this approach>
- <problem being solved>
- <side effect worth knowing about>"""

# (style, include_body) -> (subject, body or None); detailed always has a body
FORMAT_SAMPLES: dict[tuple[str, bool], tuple[str, str | None]] = {
    ("simple", True): (_SUBJECT_PLAIN, _BODY_PLAIN),
    ("simple", False): (_SUBJECT_PLAIN, None),
    ("detailed", True): (_SUBJECT_TYPED, _BODY_DETAILED),
    ("detailed", False): (_SUBJECT_TYPED, _BODY_DETAILED),
    ("conventional", True): (_SUBJECT_TYPED, _BODY_CONVENTIONAL),
    ("conventional", False): (_SUBJECT_TYPED, None),
}


@dataclass
class PromptConfig:
    """Everything besides the diff that shapes a commit message prompt."""
    hint: str | None = None
    forced_type: str | None = None
    num_options: int = 1
    file_count: int = 0
    style: str = "conventional"
    include_body: bool = True
    max_subject_length: int = 72
    instructions: str = ""


class PromptBuilder:
    """Builds the prompt for generating one or more commit message options."""

    def build(self, diff: ProcessedDiff, config: PromptConfig | None = None) -> str:
        config = config or PromptConfig()
        sections = [
            self._role_section(),
            self._format_section(config),
            self._sample_section(config),
            self._changes_section(diff),
            self._hint_section(config),
            self._instructions_section(config),
            self._output_section(config),
        ]
        return "\n\n".join(filter(None, sections))

    def _role_section(self) -> str:
        return """Write the commit message for the change below.

Guidelines:
- Work out the single main purpose of the change and describe that.
- The subject should finish the sentence "When applied, this commit will ...".
- Use bullets for things a reader cannot see at a glance: reasons, effects, non-obvious details.
- Choose exact verbs such as add, remove, rename, extract, guard. Avoid update, change, modify.
- Do not narrate the diff line by line.

Scope (for the type(scope): form):
- Always give one: feat(parser):, fix(cli):, refactor(config):
- One word naming a module, feature or component, never a file path.
- If several areas change, name the one that matters most."""

    def _format_section(self, config: PromptConfig) -> str:
        max_len = config.max_subject_length

        if config.style == "simple":
            subject_desc = f"subject (imperative, lowercase, at most {max_len} characters)"
            type_rule = "\nDo not prefix the subject with a type."
        else:
            subject_desc = f"type(scope): subject (imperative, lowercase, at most {max_len} characters)"
            type_rule = self._type_rule(config.forced_type)

        if config.include_body:
            body_rule = self._body_rule(config)
        else:
            body_rule = "\nSubject only. No body and no bullets."

        return f"""<format>
Use exactly this layout:

{subject_desc}
{body_rule}

{type_rule}
</format>"""

    def _type_rule(self, forced_type: str | None) -> str:
        if forced_type:
            return f"\nThe type must be '{forced_type}'."
        types_list = "\n".join(f"  - {t}: {desc}" for t, desc in COMMIT_TYPES.items())
        return f"\nPick the type that fits best:\n{types_list}"

    def _body_rule(self, config: PromptConfig) -> str:
        fc = config.file_count
        ranges = BULLET_RANGES_DETAILED if config.style == "detailed" else BULLET_RANGES
        bullets = self._lookup(fc, ranges)
        size = self._lookup(fc, CHANGE_SIZE_LABELS)

        lead = "You must write" if fc >= 8 else "Write"
        target = f"this {size} change" if size else "this change"

        return f"""
- bullets describing the change

{lead} {bullets} bullets for {target} ({fc} files).

Each bullet is one complete sentence of roughly 10-20 words that names
the file, function or component involved."""

    def _lookup(self, file_count: int, table: list[tuple[int, str]]) -> str:
        for threshold, value in table:
            if file_count >= threshold:
                return value
        return table[-1][1]

    def _sample_section(self, config: PromptConfig) -> str:
        subject, body = FORMAT_SAMPLES.get(
            (config.style, config.include_body), FORMAT_SAMPLES[("conventional", True)]
        )
        sample = subject if not body else f"{subject}\n\n{body}"

        return f"""<layout>
The placeholders below show layout only. Take every word of your message from the real diff.

{sample}
</layout>"""

    def _changes_section(self, diff: ProcessedDiff) -> str:
        parts = ["<changes>", f"FILES CHANGED: {diff.total_files}", "", diff.summary]

        if diff.detailed_diff:
            parts.extend(["", "DIFF:", diff.detailed_diff])

        if diff.truncated:
            parts.append("\n[Some file diffs were left out for size. Use the file list above to judge scope.]")

        parts.append("</changes>")
        return "\n".join(parts)

    def _hint_section(self, config: PromptConfig) -> str:
        if not config.hint:
            return ""

        return f"""<hint>
The author describes this change as:
"{config.hint}"

Use it, but trust the diff if the two disagree.
</hint>"""

    def _instructions_section(self, config: PromptConfig) -> str:
        if not config.instructions.strip():
            return ""

        return f"""<project-rules>
Follow these project conventions:
{config.instructions.strip()}
</project-rules>"""

    def _output_section(self, config: PromptConfig) -> str:
        subject = "subject" if config.style == "simple" else "type(scope): subject"

        if config.num_options > 1:
            return self._multi_output(config, subject)

        body_rule = "- Put bullets in the body" if config.include_body else "- Subject line only"
        return f"""<output>
Reply with ONE commit message and nothing else.

- First line is the {subject} line
- No markdown, no code fences, no bold
- No introduction and no commentary afterwards
{body_rule}
</output>"""

    def _multi_output(self, config: PromptConfig, subject: str) -> str:
        n = config.num_options
        body = "\n\n- bullet describing the change" if config.include_body else ""
        if n == 2:
            angles = """The two options must differ in angle:
- Option 1 describes the technical change
- Option 2 describes the effect for users of the code"""
        else:
            angles = "Every option must look at the change from a different angle."

        blocks = "\n\n".join(f"[Option {i}]\n{subject}{body}" for i in range(1, n + 1))
        labels = ", ".join(f"[Option {i}]" for i in range(1, n + 1))

        return f"""<output>
Reply with {n} separate commit messages.

{angles}

Use exactly this layout:

{blocks}

Keep every label ({labels}) exactly as written. No markdown and no commentary.
</output>"""
