"""Terminal Output Package

All user-facing reporting goes through here. Styling is dropped when
stdout is not a terminal or NO_COLOR is set; FORCE_COLOR turns it back on.
"""

import itertools
import os
import re
import sys
import threading


class Colors:
    """ANSI escape codes."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'


def _detect_color() -> bool:
    if os.environ.get('NO_COLOR'):
        return False
    if os.environ.get('FORCE_COLOR'):
        return True
    isatty = getattr(sys.stdout, 'isatty', None)
    if isatty is None or not isatty():
        return False
    if sys.platform != 'win32':
        return True
    # Windows consoles need VT processing switched on
    try:
        import ctypes
        kernel32 = ctypes.windll.kernel32
        return bool(kernel32.SetConsoleMode(kernel32.GetStdHandle(-11), 7))
    except (AttributeError, OSError):
        return False


def _detect_unicode() -> bool:
    try:
        '✓─⠋'.encode(sys.stdout.encoding or 'utf-8')
    except (UnicodeEncodeError, LookupError):
        return False
    return True


COLORS_ENABLED = _detect_color()
UNICODE_ENABLED = _detect_unicode()

CHECK, CROSS, RULE = ('✓', '✗', '─') if UNICODE_ENABLED else ('[OK]', '[X]', '-')


def _colorize(text: str, *codes: str) -> str:
    if not COLORS_ENABLED:
        return text
    return ''.join(codes) + text + Colors.RESET


def _style(*codes: str):
    def apply(text: str) -> str:
        return _colorize(text, *codes)
    return apply


success = _style(Colors.GREEN)
error = _style(Colors.RED)
warning = _style(Colors.YELLOW)
info = _style(Colors.CYAN)
dim = _style(Colors.DIM)
bold = _style(Colors.BOLD)


def print_success(message: str) -> None:
    print(success(CHECK), message)


def print_error(message: str) -> None:
    print(error(CROSS), error(message), file=sys.stderr)


def print_warning(message: str) -> None:
    print(warning('!'), warning(message))


def print_verbose(message: str) -> None:
    """Diagnostics shown with --verbose."""
    for line in message.split('\n'):
        print(dim(f"  {line}"))


# Commit type -> color of its type(scope): prefix
COMMIT_TYPE_COLORS = {
    **dict.fromkeys(('feat', 'perf'), Colors.GREEN),
    **dict.fromkeys(('fix',), Colors.RED),
    **dict.fromkeys(('refactor',), Colors.YELLOW),
    **dict.fromkeys(('docs', 'ci', 'build'), Colors.CYAN),
    **dict.fromkeys(('test',), Colors.MAGENTA),
    **dict.fromkeys(('chore', 'style'), Colors.DIM),
}

_TYPE_PREFIX_RE = re.compile(r'^(\w+)(\([^)]*\))?(!?:)')


def colorize_commit_type(message: str) -> str:
    """Color the type(scope): prefix on the first line of a commit message."""
    subject, sep, rest = message.partition('\n')
    match = _TYPE_PREFIX_RE.match(subject)
    if not COLORS_ENABLED or not match or match.group(1) not in COMMIT_TYPE_COLORS:
        return message
    prefix = match.group(0)
    styled = _colorize(prefix, Colors.BOLD, COMMIT_TYPE_COLORS[match.group(1)])
    return styled + subject[len(prefix):] + sep + rest


def print_commit_message(message: str) -> None:
    """Print a commit message between two rules, subject in bold."""
    # Rule width from the raw text, ANSI codes excluded
    width = max((len(line) for line in message.split('\n')), default=40)
    subject, *body = colorize_commit_type(message).split('\n')
    print()
    print(dim(RULE * width))
    print(bold(subject))
    for line in body:
        print(line)
    print(dim(RULE * width))


class Spinner:
    """Animated spinner for slow calls; only drawn on a terminal."""

    FRAMES = '⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏' if UNICODE_ENABLED else '-\\|/'
    INTERVAL = 0.08

    def __init__(self, label: str = ""):
        self.label = label
        self._done = threading.Event()
        self._thread = None

    def _run(self):
        for frame in itertools.cycle(self.FRAMES):
            print(f'\r\033[K{frame} {self.label}', end='', flush=True)
            if self._done.wait(self.INTERVAL):
                break

    def __enter__(self):
        if sys.stdout.isatty():
            self._done.clear()
            self._thread = threading.Thread(target=self._run, daemon=True)
            self._thread.start()
        return self

    def __exit__(self, *exc):
        self._done.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            print('\r\033[K', end='', flush=True)


__all__ = [
    "Colors", "COLORS_ENABLED", "UNICODE_ENABLED",
    "CHECK", "CROSS", "RULE",
    "success", "error", "warning", "info", "dim", "bold",
    "print_success", "print_error", "print_warning", "print_verbose",
    "print_commit_message", "colorize_commit_type", "Spinner", "COMMIT_TYPE_COLORS",
]
