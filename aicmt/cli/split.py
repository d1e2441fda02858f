"""Split flow: group every working tree change into a series of commits."""

from aicmt.errors import ApplyError, OracleError, ParseError, RollbackError
from aicmt.git import GitRepository, GitError, group_by_file
from aicmt.llm import LLMClient, LLMError, LLMResponse, get_client
from aicmt.output import bold, dim, info, print_error, print_success, print_verbose, print_warning, colorize_commit_type, Spinner
from aicmt.prompts import GroupingPromptBuilder, GROUPING_SYSTEM_PROMPT
from aicmt.split import SplitPlan, plan_split, execute_split

from aicmt.cli.utils import confirm


class RecordingOracle:
    """Grouping oracle backed by an LLM client; keeps the last exchange for --verbose."""

    def __init__(self, client: LLMClient):
        self.client = client
        self.prompt = ""
        self.response: LLMResponse | None = None

    def __call__(self, prompt: str) -> str:
        self.prompt = prompt
        with Spinner(f"Grouping with {self.client.name}..."):
            # The JSON answer is checked by the grouping parser, not retried here
            self.response = self.client.generate(prompt, system=GROUPING_SYSTEM_PROMPT, validator=None)
        return self.response.content


def format_plan(plan: SplitPlan) -> str:
    """Numbered commits with the files and units each one covers."""
    blocks = []
    for number, group in enumerate(plan.groups, 1):
        message = colorize_commit_type(group.message).split('\n')
        lines = [f"  {info(f'{number}.')} {bold(message[0])}"]
        lines.extend(f"     {line}" for line in message[1:] if line.strip())
        for path, units in group_by_file(plan.units_for(group)).items():
            indexes = ", ".join(str(unit.index) for unit in units)
            label = "whole file" if units[0].is_whole_file else f"hunks {indexes}"
            lines.append(dim(f"     - {path} ({label})"))
        blocks.append('\n'.join(lines))
    return '\n\n'.join(blocks)


def _print_oracle_trace(oracle: RecordingOracle) -> None:
    if not oracle.prompt:
        return
    print()
    print_verbose(f"Prompt: ~{len(oracle.prompt) // 4} tokens ({len(oracle.prompt)} chars)")
    if oracle.response is not None:
        print_verbose(f"Response: {oracle.response.tokens_used} tokens")
        print_verbose("Raw response:")
        print_verbose(oracle.response.content)


def _report_apply_failure(e: ApplyError) -> None:
    print_error(str(e))
    if e.rolled_back:
        print_warning(f"Rolled back {e.commits_undone} commit(s); repository restored to {e.checkpoint[:12]}.")
    else:
        print_warning("No commits were created. Unstage any leftovers with: git reset -q")
    print(dim("  Your working tree changes are untouched."))


def _report_rollback_failure(e: RollbackError) -> None:
    print_error(str(e.apply_error))
    print_error(f"Rollback failed: {str(e).splitlines()[0]}")
    print_warning(f"Checkpoint: {e.checkpoint}")
    print_warning(f"{e.commits_attempted} commit(s) were created and {e.commits_rolled_back} rolled back.")
    print(f"  Restore manually with: {bold(f'git reset --mixed {e.checkpoint}')}")


def run_split(args, config, provider, model) -> int:
    """Plan groups, confirm, then commit them in order. Returns exit code."""
    try:
        repo = GitRepository()
        status = repo.status()
    except GitError as e:
        print_error(str(e))
        return 1

    if status.is_clean:
        print_error("No changes to commit.")
        return 1

    try:
        client = get_client(
            provider=provider,
            model=model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            api_key=config.openrouter_api_key,
        )
    except LLMError as e:
        print_error(str(e))
        return 1

    if status.staged:
        print(dim(f"Unstaging {len(status.staged)} staged file(s) so every change can be grouped."))

    oracle = RecordingOracle(client)

    def announce(units):
        files = len(group_by_file(units))
        print(f"Analyzing {bold(str(len(units)))} units across {bold(str(files))} files using {info(client.name)}...")

    try:
        plan = plan_split(
            repo,
            oracle,
            instructions=config.instructions,
            context_lines=config.context_lines,
            prompt_builder=GroupingPromptBuilder(config.max_subject_length),
            on_units=announce,
        )
    except (ParseError, GitError) as e:
        print_error(str(e))
        return 1
    except OracleError as e:
        if args.verbose:
            _print_oracle_trace(oracle)
        print_error(str(e))
        return 1

    if args.verbose:
        _print_oracle_trace(oracle)

    print(f"\nProposed {len(plan.groups)} commits:\n")
    print(format_plan(plan))
    print()

    if args.dry_run:
        print(dim(f"[dry-run] Would create {len(plan.groups)} commits; nothing was committed."))
        return 0

    if not args.yes and not confirm(f"Proceed with these {len(plan.groups)} commits?"):
        print(dim("Split commit cancelled."))
        return 0

    def report(number, total, group):
        subject = group.message.split("\n")[0]
        print(f"{info(f'Commit {number}/{total}:')} {colorize_commit_type(subject)}")

    try:
        created = execute_split(repo, plan, on_commit=report)
    except RollbackError as e:
        _report_rollback_failure(e)
        return 1
    except ApplyError as e:
        _report_apply_failure(e)
        return 1
    except GitError as e:
        print_error(str(e))
        return 1

    print()
    print_success(f"Created {created} commits.")
    return 0
