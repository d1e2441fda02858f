"""Configuration Package

Settings live in a JSON ``.aicmtrc``, looked up in the current directory
and then in the home directory.
"""

import json
import os
import sys
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

VALID_PROVIDERS = {"auto", "openrouter", "claude", "ollama"}
VALID_STYLES = {"simple", "conventional", "detailed"}

MIN_CONTEXT_LINES = 0
MAX_CONTEXT_LINES = 50
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0
MIN_OUTPUT_TOKENS = 32
MAX_OUTPUT_TOKENS = 4096


@dataclass
class Config:
    """User configuration with defaults."""
    provider: str = "auto"
    model: Optional[str] = None
    style: str = "conventional"
    include_body: bool = True
    max_subject_length: int = 72
    instructions: str = ""
    context_lines: int = 8
    temperature: float = 0.2
    max_tokens: int = 1000
    openrouter_api_key: Optional[str] = None
    max_file_display: int = 8  # files listed before the rest is collapsed

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def validate(self) -> list[str]:
        """Reset invalid values to defaults and return a warning for each."""
        warnings = []
        defaults = Config()

        for name, is_valid, expected in _FIELD_CHECKS:
            value = getattr(self, name)
            if value is None and getattr(defaults, name) is None:
                continue
            if not is_valid(value):
                fallback = getattr(defaults, name)
                shown = "unset" if fallback is None else repr(fallback)
                warnings.append(f"Invalid {name} {value!r} (expected {expected}), using {shown}")
                setattr(self, name, fallback)

        self.max_tokens = clamp_max_tokens(self.max_tokens)
        return warnings

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        for warning in config.validate():
            print(f"Config warning: {warning}", file=sys.stderr)
        return config


def _is_int(value) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value) -> bool:
    return _is_int(value) and value > 0


# (field, predicate, what a valid value looks like)
_FIELD_CHECKS = [
    ("provider", lambda v: v in VALID_PROVIDERS, " | ".join(sorted(VALID_PROVIDERS))),
    ("model", lambda v: isinstance(v, str) and bool(v.strip()), "a model name"),
    ("style", lambda v: v in VALID_STYLES, " | ".join(sorted(VALID_STYLES))),
    ("include_body", lambda v: isinstance(v, bool), "true or false"),
    ("max_subject_length", _is_positive_int, "a positive integer"),
    ("instructions", lambda v: isinstance(v, str), "text"),
    ("context_lines", lambda v: _is_int(v) and MIN_CONTEXT_LINES <= v <= MAX_CONTEXT_LINES,
     f"{MIN_CONTEXT_LINES}-{MAX_CONTEXT_LINES}"),
    ("temperature", lambda v: _is_number(v) and MIN_TEMPERATURE <= v <= MAX_TEMPERATURE,
     f"{MIN_TEMPERATURE}-{MAX_TEMPERATURE}"),
    ("max_tokens", _is_positive_int, "a positive integer"),
    ("openrouter_api_key", lambda v: isinstance(v, str) and bool(v.strip()), "a non-empty key"),
    ("max_file_display", _is_positive_int, "a positive integer"),
]


def clamp_max_tokens(value: int) -> int:
    return max(MIN_OUTPUT_TOKENS, min(value, MAX_OUTPUT_TOKENS))


def resolve_provider_and_model(cli_provider: Optional[str], cli_model: Optional[str], config: Config) -> tuple[str, Optional[str]]:
    """Precedence: CLI args > environment variables > config file."""
    provider = cli_provider or os.environ.get('AICMT_PROVIDER') or config.provider
    model = cli_model or os.environ.get('AICMT_MODEL') or config.model
    return provider, model


class ConfigManager:
    """Loads and saves ``.aicmtrc``."""

    CONFIG_FILENAME = ".aicmtrc"

    def __init__(self):
        self._config: Optional[Config] = None
        self._config_path: Optional[Path] = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        for path in (Path.cwd() / self.CONFIG_FILENAME, Path.home() / self.CONFIG_FILENAME):
            if path.exists():
                self._config = self._load_from_file(path)
                self._config_path = path
                return self._config

        self._config = Config()
        return self._config

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            print(f"Config warning: could not load {path}: {e}", file=sys.stderr)
            return Config()

        if not isinstance(data, dict):
            print(f"Config warning: {path} must contain a JSON object", file=sys.stderr)
            return Config()
        return Config.from_dict(data)

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = Path.home() / self.CONFIG_FILENAME if global_config else Path.cwd() / self.CONFIG_FILENAME
        with open(path, 'w') as f:
            json.dump(config.to_dict(), f, indent=2)
            f.write('\n')
        self._config = config
        self._config_path = path
        return path

    def get_config_path(self) -> Optional[Path]:
        return self._config_path


def ensure_gitignore_entry(repo_root: Path, target: Path) -> bool:
    """Add ``target`` to the repo's .gitignore. Returns True if the file changed.

    Paths outside the repository and entries already listed are left alone.
    """
    try:
        relative = Path(target).resolve().relative_to(Path(repo_root).resolve())
    except ValueError:
        return False

    entry = relative.as_posix()
    gitignore = Path(repo_root) / '.gitignore'
    existing = gitignore.read_text() if gitignore.exists() else ""

    if any(line.strip() == entry for line in existing.split('\n')):
        return False

    prefix = '\n' if existing and not existing.endswith('\n') else ''
    gitignore.write_text(f"{existing}{prefix}{entry}\n")
    return True


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def save_config(config: Config, global_config: bool = True) -> Path:
    return _manager.save(config, global_config)


def get_config_path() -> Optional[Path]:
    return _manager.get_config_path()


__all__ = [
    "Config",
    "ConfigManager",
    "load_config",
    "save_config",
    "get_config_path",
    "clamp_max_tokens",
    "ensure_gitignore_entry",
    "resolve_provider_and_model",
    "VALID_PROVIDERS",
    "VALID_STYLES",
]
