"""LLM Client Package"""

from aicmt.llm.base import (
    LLMClient, LLMResponse, LLMError, SYSTEM_PROMPT, Validator,
    validate_commit_message, validate_plain_message,
)
from aicmt.llm.claude import ClaudeClient
from aicmt.llm.ollama import OllamaClient
from aicmt.llm.openrouter import OpenRouterClient

PROVIDERS = {
    "openrouter": OpenRouterClient,
    "claude": ClaudeClient,
    "ollama": OllamaClient,
}

AUTO_DETECT_ORDER = ["ollama", "openrouter", "claude"]


def get_client(
    provider: str = "auto",
    model: str | None = None,
    *,
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
) -> LLMClient:
    """Get an LLM client. Provider can be 'openrouter', 'claude', 'ollama', or 'auto'.

    ``api_key`` is only used by OpenRouter; the other providers read their
    own environment variables.
    """
    def _make(name: str) -> LLMClient:
        options = {"model": model, "temperature": temperature, "max_tokens": max_tokens}
        if name == "openrouter":
            options["api_key"] = api_key
        return PROVIDERS[name](**options)

    if provider in PROVIDERS:
        return _make(provider)

    if provider == "auto":
        for name in AUTO_DETECT_ORDER:
            try:
                return _make(name)
            except LLMError:
                continue

        raise LLMError(
            "No LLM provider available.\n\n"
            "Option 1 - Use Ollama (free, local):\n"
            "  1. Install: https://ollama.ai\n"
            "  2. Start: ollama serve\n\n"
            "Option 2 - Use OpenRouter:\n"
            "  export OPENROUTER_API_KEY='your-key-here'\n\n"
            "Option 3 - Use Claude API:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )

    raise LLMError(f"Unknown provider: {provider}. Use 'openrouter', 'claude', 'ollama', or 'auto'.")


__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMError",
    "ClaudeClient",
    "OllamaClient",
    "OpenRouterClient",
    "get_client",
    "PROVIDERS",
    "SYSTEM_PROMPT",
    "Validator",
    "validate_commit_message",
    "validate_plain_message",
]
