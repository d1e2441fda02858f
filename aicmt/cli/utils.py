"""CLI Utility Functions"""

import os
import re
import subprocess
import sys
import tempfile

from aicmt import COMMIT_TYPE_NAMES
from aicmt.output import bold, dim, info, colorize_commit_type

TYPES_PATTERN = '|'.join(COMMIT_TYPE_NAMES)

# Lines that mean the model started echoing the diff or closed a fence
_TRAILING_JUNK = re.compile(r'^(diff --git |@@\s|[+-]{3}\s[ab]/|index [0-9a-f]|```)')


def clean_commit_message(text: str) -> str:
    """Cut a model response down to the commit message itself."""
    lines = text.strip().split('\n')

    start = 0
    for i, line in enumerate(lines):
        if re.match(rf'^[`\s]*({TYPES_PATTERN})[\(!:]', line):
            start = i
            break

    end = len(lines)
    for i in range(start + 1, len(lines)):
        if _TRAILING_JUNK.match(lines[i]):
            end = i
            break

    lines = '\n'.join(lines[start:end]).rstrip().split('\n')
    lines[0] = lines[0].strip('`').strip()
    return '\n'.join(lines)


def parse_options(response: str) -> list[str]:
    """Split a multi-option response into cleaned messages."""
    parts = [p.strip() for p in re.split(r'\[Option \d+\]\s*', response) if p.strip()]

    if len(parts) <= 1 and not re.search(r'\[Option \d+\]', response):
        # No labels: split before each line that starts a new typed subject
        parts = [p.strip() for p in re.split(rf'\n(?=\[?(?:{TYPES_PATTERN})[\(!:])', response.strip()) if p.strip()]

    options = []
    for part in parts:
        option = clean_commit_message(part)
        option = re.sub(rf'^\[?({TYPES_PATTERN})\(', r'\1(', option)
        lines = option.split('\n')
        if lines[0].endswith(']'):
            lines[0] = lines[0][:-1]
        options.append('\n'.join(lines))

    return options or [clean_commit_message(response)]


def _format_option(message: str, number: int) -> str:
    lines = colorize_commit_type(message).split('\n')
    parts = [f"{info(f'[{number}]')} {bold(lines[0])}"]

    body = [line for line in lines[1:] if line.strip()]
    if body:
        parts.append("")
        for line in body:
            if line.strip().startswith('-'):
                line = line.replace('-', dim('-'), 1)
            parts.append(f"    {line}")

    return '\n'.join(parts)


def display_options(options: list[str]) -> int | None:
    """Print numbered options and read a choice. Returns None on quit."""
    print()
    for i, option in enumerate(options, 1):
        print(_format_option(option, i))
        if i < len(options):
            print(f"\n{dim('    · · ·')}\n")

    print()
    while True:
        try:
            choice = input(f"Select [1-{len(options)}] or (q)uit: ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            return None
        if choice == 'q':
            return None
        if choice.isdigit() and 1 <= int(choice) <= len(options):
            return int(choice) - 1
        print(f"Enter 1-{len(options)} or q")


def confirm(question: str, default: bool = True) -> bool:
    """Yes/no prompt. Ctrl-C and EOF count as no."""
    suffix = "[Y/n]" if default else "[y/N]"
    try:
        answer = input(f"{question} {suffix} ").strip().lower()
    except (KeyboardInterrupt, EOFError):
        print()
        return False
    if not answer:
        return default
    return answer in ('y', 'yes')


def edit_message(message: str) -> str | None:
    """Open ``message`` in $VISUAL/$EDITOR. Returns the edited text or None."""
    editor = os.environ.get('VISUAL') or os.environ.get('EDITOR')
    if not editor:
        editor = 'notepad' if sys.platform == 'win32' else 'vi'

    tmp = tempfile.NamedTemporaryFile(mode='w', suffix='.gitcommit', delete=False, encoding='utf-8')
    try:
        tmp.write(message)
        tmp.close()
        subprocess.run([*editor.split(), tmp.name], check=True)
        with open(tmp.name, 'r', encoding='utf-8') as f:
            edited = f.read().strip()
        return edited or None
    except (subprocess.CalledProcessError, OSError):
        return None
    finally:
        try:
            os.unlink(tmp.name)
        except OSError as e:
            print(f"Warning: could not delete temp file {tmp.name}: {e}", file=sys.stderr)
