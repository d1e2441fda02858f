"""CLI Commands"""

import os
import sys

from aicmt.config import Config, ConfigManager, load_config, save_config, get_config_path, ensure_gitignore_entry
from aicmt.git import GitRepository, GitError
from aicmt.output import bold, dim, info, print_success, print_warning

CONFIG_FILENAME = ConfigManager.CONFIG_FILENAME


def display_config() -> int:
    """Show the effective configuration and where it came from."""
    config = load_config()
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")

    source = config_path or f"defaults (no {CONFIG_FILENAME} found)"
    print(f"  {dim('Loaded from:')} {source}")

    overrides = {name: os.environ.get(name) for name in ('AICMT_PROVIDER', 'AICMT_MODEL')}
    if any(overrides.values()):
        print(f"  {dim('Environment overrides:')}")
        for name, value in overrides.items():
            if value:
                print(f"    {name}={value}")

    api_key = "set" if config.openrouter_api_key else ("from env" if os.environ.get('OPENROUTER_API_KEY') else "not set")
    settings = [
        ("provider", config.provider),
        ("model", config.model or "provider default"),
        ("style", config.style),
        ("include_body", str(config.include_body).lower()),
        ("max_subject_length", str(config.max_subject_length)),
        ("context_lines", str(config.context_lines)),
        ("temperature", str(config.temperature)),
        ("max_tokens", str(config.max_tokens)),
        ("openrouter_api_key", api_key),
        ("instructions", config.instructions.split('\n')[0][:50] or "none"),
    ]

    print(f"\n  {bold('Settings:')}")
    for name, value in settings:
        print(f"    {name + ':':<20}{info(value)}")

    print(f"\n  {dim('Config locations:')}")
    print(f"    Local:  {CONFIG_FILENAME} (in current directory)")
    print(f"    Global: ~/{CONFIG_FILENAME}")
    print(f"\n  {dim('Run')} aicmt --setup {dim('to configure')}\n")

    return 0


def _choose(prompt: str, choices: dict[str, str], default: str | None = None) -> str:
    while True:
        choice = input(prompt).strip()
        if not choice and default is not None:
            return default
        if choice in choices:
            return choices[choice]


def run_setup() -> int:
    """Interactive setup wizard."""
    display_config()
    print(f"{bold('Setup Wizard')}\n")

    try:
        return _run_setup_steps()
    except (KeyboardInterrupt, EOFError):
        print(f"\n{dim('Setup cancelled.')}")
        return 0


def _run_setup_steps() -> int:
    print("Choose provider:\n")
    print("  1. Ollama (free, local)")
    print("  2. OpenRouter (any hosted model)")
    print("  3. Claude API\n")
    provider = _choose("Select [1/2/3]: ", {'1': 'ollama', '2': 'openrouter', '3': 'claude'})

    model = None
    api_key = None
    if provider == 'ollama':
        print("\nRecommended: llama3.2:3b, gemma3:4b, mistral:7b\n")
        model = input("Model (Enter for default): ").strip() or None
    elif provider == 'openrouter':
        print("\nExamples: openai/gpt-4o-mini, anthropic/claude-3.5-haiku\n")
        model = input("Model (Enter for openai/gpt-4o-mini): ").strip() or None
        api_key = input("API key (Enter to use OPENROUTER_API_KEY): ").strip() or None

    print("\nCommit message style:\n")
    print("  1. conventional - type(scope): subject with bullets (default)")
    print("  2. simple - plain subject with bullets")
    print("  3. detailed - type(scope): subject with more bullets\n")
    style = _choose("Select [1/2/3] (Enter for default): ",
                    {'1': 'conventional', '2': 'simple', '3': 'detailed'}, default='conventional')

    include_body = input("\nInclude bullet points in commit body? [Y/n]: ").strip().lower() != 'n'

    max_len_input = input("\nMax subject line length (Enter for 72): ").strip()
    max_subject_length = int(max_len_input) if max_len_input.isdigit() and int(max_len_input) > 0 else 72

    instructions = input("\nProject commit conventions, one line (Enter to skip): ").strip()

    scope = _choose("\nSave for (1) all projects or (2) this repository only? [1/2] (Enter for 1): ",
                    {'1': 'global', '2': 'local'}, default='global')

    config = Config(
        provider=provider,
        model=model,
        style=style,
        include_body=include_body,
        max_subject_length=max_subject_length,
        instructions=instructions,
        openrouter_api_key=api_key,
    )
    path = save_config(config, global_config=(scope == 'global'))
    print_success(f"Saved to {path}")

    if scope == 'local':
        _protect_local_config(path)
    return 0


def _protect_local_config(path) -> None:
    """Keep a repository-local config (which may hold an API key) out of git."""
    try:
        repo = GitRepository()
    except GitError:
        print_warning(f"Not in a git repository; make sure {path.name} is not committed")
        return
    if ensure_gitignore_entry(repo.root, path):
        print_success(f"Added {path.name} to .gitignore")


def run_install_completion() -> int:
    """Print the line that enables shell tab completion."""
    shell = os.environ.get('SHELL', '')
    hook = 'eval "$(register-python-argcomplete aicmt)"'
    powershell = "register-python-argcomplete --shell powershell aicmt | Out-String | Invoke-Expression"

    print(f"\n{bold('Tab Completion Setup')}\n")

    rc_name = '.zshrc' if 'zsh' in shell else '.bashrc' if 'bash' in shell else None
    if rc_name:
        rc_file = os.path.expanduser(f'~/{rc_name}')
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {hook}\n")
        print(f"Then run: {dim(f'source ~/{rc_name}')}")
    elif sys.platform == 'win32':
        print("For PowerShell, add this to your $PROFILE:\n")
        print(f"  {powershell}")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print(f"  {hook}\n")
        print(f"  {dim('# PowerShell')}")
        print(f"  {powershell}\n")
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish aicmt | source")

    print(f"\n{dim('After setup, press TAB to autocomplete flags.')}")
    return 0
