"""CLI Main Entry Point"""

import sys
import time

from aicmt.config import load_config, resolve_provider_and_model
from aicmt.git import GitRepository, GitError, DiffProcessor
from aicmt.llm import get_client, LLMError
from aicmt.prompts import PromptBuilder, PromptConfig
from aicmt.output import success, dim, bold, info, print_error, print_success, print_verbose, print_commit_message, Spinner

from aicmt.cli.args import parse_args
from aicmt.cli.commands import display_config, run_setup, run_install_completion
from aicmt.cli.split import run_split
from aicmt.cli.utils import clean_commit_message, confirm, display_options, edit_message, parse_options


def _handle_subcommands(args):
    """Returns (exit_code, should_exit) for flags that replace the normal flow."""
    if args.install_completion:
        return run_install_completion(), True
    if args.display_config:
        return display_config(), True
    if args.setup:
        return run_setup(), True
    return 0, False


def _apply_overrides(args, config) -> None:
    """CLI flags win over the config file."""
    if args.style:
        config.style = args.style
    if args.no_body:
        config.include_body = False
    if args.context is not None:
        config.context_lines = args.context


def _display_file_list(processed, max_shown):
    """List staged files, collapsing long lists."""
    if not processed.file_details:
        return
    print(bold("Staged changes:"))
    shown = processed.file_details[:max_shown]
    for path, additions, deletions in shown:
        print(dim(f"  {path} (+{additions} -{deletions})"))
    remaining = len(processed.file_details) - len(shown)
    if remaining > 0:
        print(dim(f"  ... and {remaining} more files"))
    if processed.filtered_files > 0:
        print(dim(f"  {processed.filtered_files} noise files filtered"))


def _stage_changes(repo, args) -> bool:
    """Offer to stage unstaged work. Returns False when nothing is staged afterwards."""
    status = repo.status()
    if status.is_clean:
        print_error("No changes to commit.")
        return False

    if status.unstaged:
        if args.yes or confirm(f"Stage all changes ({len(status.all_files)} files)?"):
            repo.stage_all()
            return True

    if not status.staged:
        print_error("No staged changes. Run 'git add' first or answer yes to staging.")
        return False
    return True


def _print_verbose_stats(prompt, response, timings):
    print()
    print_verbose(f"Prompt: ~{len(prompt) // 4} tokens ({len(prompt)} chars)")
    print_verbose(f"Response: {response.tokens_used} tokens")
    if response.tokens_used > 0 and timings.get('generate'):
        print_verbose(f"Speed: {response.tokens_used / timings['generate']:.1f} tokens/sec")
    print_verbose(
        f"Timings: git={timings['git']:.2f}s, diff={timings['diff']:.2f}s, generate={timings.get('generate', 0):.2f}s"
    )
    print_verbose("Raw response:")
    print_verbose(response.content)


def _pick_message(args, response) -> str | None:
    """Turn the response into one message; None if the user quit."""
    if args.choose is None:
        return clean_commit_message(response.content)

    options = parse_options(response.content)
    if args.yes or len(options) == 1:
        return options[0]

    idx = display_options(options)
    return None if idx is None else options[idx]


def _review(message, prompt_config, processed):
    """Edit/regenerate/accept prompt. Returns (action, message, new_prompt)."""
    try:
        action = input(f"\n{dim('(e)dit, (r)egenerate, or Enter to accept: ')}").strip().lower()
    except (KeyboardInterrupt, EOFError):
        return 'done', message, None

    if action == 'e':
        return 'done', edit_message(message) or message, None
    if action == 'r':
        try:
            hint = input(dim('  Hint (Enter to skip): ')).strip()
        except (KeyboardInterrupt, EOFError):
            return 'done', message, None
        if hint:
            prompt_config.hint = hint
        return 'regenerate', message, PromptBuilder().build(processed, prompt_config)
    return 'done', message, None


def _commit_flow(args, config, provider, model) -> int:
    """Single commit from the staged changes. Returns exit code."""
    interactive = sys.stdin.isatty() and not args.yes
    timings = {}

    t0 = time.time()
    repo = GitRepository()
    if not _stage_changes(repo, args):
        return 1
    changes = repo.get_staged_changes(config.context_lines)
    timings['git'] = time.time() - t0

    if changes.is_empty:
        print_error("No staged changes. Run 'git add' first.")
        return 1

    t0 = time.time()
    processed = DiffProcessor().process(changes)
    timings['diff'] = time.time() - t0
    _display_file_list(processed, config.max_file_display)

    num_options = 1
    if args.choose is not None:
        num_options = max(2, min(args.choose, 4))

    prompt_config = PromptConfig(
        hint=args.hint,
        forced_type=args.type,
        num_options=num_options,
        file_count=processed.total_files,
        style=config.style,
        include_body=config.include_body,
        max_subject_length=config.max_subject_length,
        instructions=config.instructions,
    )
    prompt = PromptBuilder().build(processed, prompt_config)

    client = get_client(
        provider=provider,
        model=model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        api_key=config.openrouter_api_key,
    )
    print(f"Analyzing {bold(str(processed.total_files))} files using {info(client.name)}...")

    while True:
        t0 = time.time()
        with Spinner():
            response = client.generate(prompt)
        timings['generate'] = time.time() - t0

        if args.verbose:
            _print_verbose_stats(prompt, response, timings)

        message = _pick_message(args, response)
        if message is None:
            print(dim("Cancelled."))
            return 0

        print_commit_message(message)
        if not interactive:
            break

        action, message, new_prompt = _review(message, prompt_config, processed)
        if action == 'regenerate':
            prompt = new_prompt
            print("\nRegenerating...")
            continue
        if action == 'done':
            break

    if args.dry_run:
        print(dim("[dry-run] Not committing."))
        return 0

    if not args.yes and not confirm("Commit with this message?"):
        print(dim("Commit cancelled."))
        return 0

    revision = repo.commit(message)
    print_success(f"Committed {success(revision[:7])}")
    return 0


def main() -> int:
    """Entry point for the aicmt command."""
    args = parse_args()

    exit_code, should_exit = _handle_subcommands(args)
    if should_exit:
        return exit_code

    config = load_config()
    provider, model = resolve_provider_and_model(args.provider, args.model, config)
    _apply_overrides(args, config)

    try:
        if args.split:
            return run_split(args, config, provider, model)
        return _commit_flow(args, config, provider, model)
    except (GitError, LLMError) as e:
        print()
        print_error(str(e))
        return 1
    except KeyboardInterrupt:
        print(f"\n{dim('Interrupted.')}")
        return 130


if __name__ == '__main__':
    sys.exit(main())
