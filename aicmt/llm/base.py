"""LLM Base Classes and Shared Code"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from aicmt import COMMIT_TYPE_NAMES


SYSTEM_PROMPT = """You write git commit messages for a team that reads its history carefully.

You know the conventional commit format (type, scope, subject, body) and you can tell the main purpose of a change from its diff. The diff already shows what changed, so your message explains why. Prefer precise verbs ("add", "remove", "extract", "guard") to vague ones ("update", "change"). Keep every line useful."""

# (is_valid, error_message) for a raw model response
Validator = Callable[[str], tuple[bool, str]]


def validate_commit_message(content: str) -> tuple[bool, str]:
    """Check that a response starts with a conventional commit subject."""
    if not content or len(content.strip()) < 10:
        return False, "Response too short"

    types_pattern = '|'.join(COMMIT_TYPE_NAMES)
    first_line = content.strip().split('\n')[0]
    # Tolerate an [Option N] label before the subject
    first_line = re.sub(r'^\[Option \d+\]\s*', '', first_line)

    if not re.match(rf'^({types_pattern})(\(.+\))?!?:', first_line):
        return False, f"Missing conventional commit format. Got: {first_line[:50]}"

    return True, ""


def validate_plain_message(content: str) -> tuple[bool, str]:
    if not content or len(content.strip()) < 5:
        return False, "Response too short"
    return True, ""


@dataclass
class LLMResponse:
    """Structured response from any LLM provider."""
    content: str
    model: str = ""
    tokens_used: int = 0


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class LLMClient(ABC):
    """Abstract base for LLM clients."""

    MAX_RETRIES = 2
    DEFAULT_TEMPERATURE = 0.4
    DEFAULT_MAX_TOKENS = 1000

    def __init__(self, temperature: float | None = None, max_tokens: int | None = None):
        self.temperature = self.DEFAULT_TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or self.DEFAULT_MAX_TOKENS

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def _complete(self, prompt: str, system: str) -> LLMResponse:
        """Single round trip to the provider."""
        pass

    def generate(
        self,
        prompt: str,
        system: str = SYSTEM_PROMPT,
        validator: Validator | None = validate_commit_message,
    ) -> LLMResponse:
        """Call the provider, retrying while ``validator`` rejects the output.

        The last response is returned even if it never validates, so the
        caller can still show it.
        """
        last_error = ""
        for attempt in range(self.MAX_RETRIES + 1):
            retry_prompt = prompt
            if attempt > 0:
                retry_prompt = (
                    f"{prompt}\n\nIMPORTANT: Your previous response was invalid ({last_error}). "
                    "Follow the requested output format exactly."
                )

            response = self._complete(retry_prompt, system)
            if validator is None:
                return response

            is_valid, last_error = validator(response.content)
            if is_valid or attempt == self.MAX_RETRIES:
                return response

        raise LLMError(f"Failed after {self.MAX_RETRIES} retries: {last_error}")
