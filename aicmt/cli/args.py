"""CLI Argument Parsing"""

import argparse
import argcomplete

from aicmt import COMMIT_TYPE_NAMES, __version__
from aicmt.config import VALID_PROVIDERS, VALID_STYLES


def _context_lines(value: str) -> int:
    try:
        lines = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got '{value}'")
    if not 0 <= lines <= 50:
        raise argparse.ArgumentTypeError("context lines must be between 0 and 50")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='aicmt',
        description='AI-assisted git commits, optionally split into several focused commits',
        epilog='Examples: aicmt (one commit from staged changes), aicmt --split (group all changes into commits)'
    )

    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')

    # Mode
    parser.add_argument('--split', action='store_true', help='Group all working tree changes into several commits')
    parser.add_argument('-y', '--yes', action='store_true', help='Skip prompts: stage all, take the first message, commit')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be committed without committing')

    # Generation options
    parser.add_argument('-c', '--choose', type=int, nargs='?', const=3, default=None, metavar='N', help='Show N options (default: 3), pick one')
    parser.add_argument('--hint', type=str, metavar='TEXT', help='Add context: --hint "fixing the login bug"')
    parser.add_argument('-t', '--type', type=str, choices=COMMIT_TYPE_NAMES, help='Force commit type')
    parser.add_argument('-U', '--context', type=_context_lines, default=None, metavar='N', help='Diff context lines (default: 8)')

    # Style options
    parser.add_argument('-s', '--style', type=str, choices=sorted(VALID_STYLES), help='Commit message style')
    parser.add_argument('--no-body', action='store_true', help='Generate subject line only, no bullet points')

    # LLM options
    parser.add_argument('-p', '--provider', type=str, choices=sorted(VALID_PROVIDERS), help='LLM provider')
    parser.add_argument('-m', '--model', type=str, metavar='MODEL', help='Model name')

    # Output options
    parser.add_argument('--verbose', action='store_true', help='Show prompt size, token counts and raw model output')

    # Setup/config
    parser.add_argument('--setup', action='store_true', help='Configure defaults')
    parser.add_argument('--display-config', action='store_true', help='Show current configuration')
    parser.add_argument('--install-completion', action='store_true', help='Install shell tab completion')

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    argcomplete.autocomplete(parser)
    return parser.parse_args(argv)
