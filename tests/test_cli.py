"""
CLI flow tests: main() against a throwaway repository with a scripted model.

Run with:
    pytest tests/test_cli.py -v
"""

import json
import subprocess

import pytest

from aicmt.cli import main as cli_main
from aicmt.cli import split as cli_split
from aicmt.cli.args import parse_args
from aicmt.config import Config
from aicmt.llm import LLMResponse


class ScriptedClient:
    """Stands in for an LLM client; answers from a queue."""

    name = "Scripted (test)"

    def __init__(self, *contents):
        self.queue = list(contents)
        self.prompts = []

    def generate(self, prompt, system=None, validator=None):
        self.prompts.append(prompt)
        return LLMResponse(content=self.queue.pop(0), tokens_used=7)


def git(cwd, *args):
    return subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True).stdout


@pytest.fixture
def run_cli(git_repo, monkeypatch):
    """Return a function that runs ``aicmt <args>`` in the repo with ``client``."""
    monkeypatch.chdir(git_repo)
    monkeypatch.setattr("aicmt.output.COLORS_ENABLED", False)
    monkeypatch.setattr(cli_main, "load_config", lambda: Config())
    monkeypatch.delenv("AICMT_PROVIDER", raising=False)
    monkeypatch.delenv("AICMT_MODEL", raising=False)

    def _run(args, client):
        monkeypatch.setattr("sys.argv", ["aicmt", *args])
        monkeypatch.setattr(cli_main, "get_client", lambda **options: client)
        monkeypatch.setattr(cli_split, "get_client", lambda **options: client)
        return cli_main.main()
    return _run


@pytest.fixture
def edited_repo(git_repo):
    """README edited and a new module added."""
    (git_repo / "README.md").write_text("# Test Repo\n\nUsage notes.\n")
    (git_repo / "app.py").write_text("print('hello')\n")
    return git_repo


class TestArgs:

    def test_defaults(self):
        args = parse_args([])
        assert args.split is False
        assert args.choose is None
        assert args.context is None

    def test_split_flags(self):
        args = parse_args(["--split", "-y", "--dry-run", "-U", "3"])
        assert (args.split, args.yes, args.dry_run, args.context) == (True, True, True, 3)

    def test_choose_default_count(self):
        assert parse_args(["-c"]).choose == 3

    @pytest.mark.parametrize("value", ["-1", "51", "many"])
    def test_context_out_of_range(self, value, capsys):
        with pytest.raises(SystemExit):
            parse_args(["-U", value])


class TestSplitCommand:

    GROUPS = json.dumps([
        {"ids": ["README.md:1"], "message": "docs(readme): add usage notes"},
        {"ids": ["app.py:1"], "message": "feat(app): add entry point"},
    ])

    def test_creates_commits(self, run_cli, edited_repo, capsys):
        client = ScriptedClient(self.GROUPS)

        assert run_cli(["--split", "--yes"], client) == 0

        out = capsys.readouterr().out
        assert "Analyzing 2 units across 2 files" in out
        assert "Commit 1/2:" in out
        assert git(edited_repo, "log", "--format=%s", "-2").split("\n")[:2] == [
            "feat(app): add entry point",
            "docs(readme): add usage notes",
        ]
        assert git(edited_repo, "status", "--porcelain") == ""

    def test_dry_run_commits_nothing(self, run_cli, edited_repo, capsys):
        head = git(edited_repo, "rev-parse", "HEAD")

        assert run_cli(["--split", "--dry-run"], ScriptedClient(self.GROUPS)) == 0

        assert "Proposed 2 commits" in capsys.readouterr().out
        assert git(edited_repo, "rev-parse", "HEAD") == head

    def test_declined_confirmation(self, run_cli, edited_repo, monkeypatch, capsys):
        head = git(edited_repo, "rev-parse", "HEAD")
        monkeypatch.setattr("builtins.input", lambda prompt="": "n")

        assert run_cli(["--split"], ScriptedClient(self.GROUPS)) == 0

        assert "cancelled" in capsys.readouterr().out
        assert git(edited_repo, "rev-parse", "HEAD") == head

    def test_unusable_oracle_answer(self, run_cli, edited_repo, capsys):
        assert run_cli(["--split", "--yes", "--verbose"], ScriptedClient("I cannot help with that.")) == 1

        captured = capsys.readouterr()
        assert "not valid JSON" in captured.err
        assert "I cannot help with that." in captured.out

    def test_clean_tree(self, run_cli, capsys):
        assert run_cli(["--split", "--yes"], ScriptedClient()) == 1
        assert "No changes to commit" in capsys.readouterr().err


class TestCommitCommand:

    def test_stages_and_commits(self, run_cli, edited_repo):
        client = ScriptedClient("Here you go:\nfeat(app): add entry point\n\n- print a greeting")

        assert run_cli(["--yes"], client) == 0

        assert git(edited_repo, "log", "-1", "--format=%B").strip() == "feat(app): add entry point\n\n- print a greeting"
        assert git(edited_repo, "status", "--porcelain") == ""

    def test_dry_run(self, run_cli, edited_repo, capsys):
        head = git(edited_repo, "rev-parse", "HEAD")

        assert run_cli(["--yes", "--dry-run"], ScriptedClient("feat(app): add entry point")) == 0

        assert "feat(app): add entry point" in capsys.readouterr().out
        assert git(edited_repo, "rev-parse", "HEAD") == head

    def test_choose_takes_first_with_yes(self, run_cli, edited_repo):
        client = ScriptedClient("[Option 1]\nfeat(app): first\n\n[Option 2]\nfeat(app): second\n\n[Option 3]\nchore: third")

        assert run_cli(["--yes", "-c"], client) == 0

        assert git(edited_repo, "log", "-1", "--format=%s").strip() == "feat(app): first"
        assert "[Option 3]" in client.prompts[0]

    def test_instructions_reach_prompt(self, run_cli, edited_repo, monkeypatch):
        monkeypatch.setattr(cli_main, "load_config", lambda: Config(instructions="Mention the ticket"))
        client = ScriptedClient("feat(app): add entry point")

        run_cli(["--yes", "--dry-run"], client)

        assert "Mention the ticket" in client.prompts[0]

    def test_nothing_to_commit(self, run_cli, capsys):
        assert run_cli(["--yes"], ScriptedClient()) == 1
        assert "No changes to commit" in capsys.readouterr().err
