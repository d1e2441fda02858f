"""
Tests for the LLM provider layer. No network: urlopen is replaced.

Run with:
    pytest tests/test_llm.py -v
"""

import io
import json
import urllib.error
from types import SimpleNamespace

import pytest

from aicmt import llm
from aicmt.llm import LLMClient, LLMError, LLMResponse, OpenRouterClient, get_client, validate_commit_message
from aicmt.llm.base import SYSTEM_PROMPT


class ScriptedClient(LLMClient):
    """Returns queued responses and records what it was asked."""

    def __init__(self, *contents):
        super().__init__()
        self.queue = list(contents)
        self.calls = []

    @property
    def name(self):
        return "Scripted"

    def _complete(self, prompt, system):
        self.calls.append((prompt, system))
        return LLMResponse(content=self.queue.pop(0))


class FakeHTTPResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


# ---------------------------------------------------------------------------
# Validation and retries
# ---------------------------------------------------------------------------

class TestValidateCommitMessage:

    @pytest.mark.parametrize("content", [
        "feat(cli): add split flag",
        "fix: handle empty diff",
        "refactor(core)!: drop legacy parser",
        "[Option 1] docs(readme): describe setup",
    ])
    def test_valid(self, content):
        assert validate_commit_message(content) == (True, "")

    @pytest.mark.parametrize("content", ["", "short", "Added a new flag to the cli"])
    def test_invalid(self, content):
        is_valid, error = validate_commit_message(content)
        assert is_valid is False
        assert error


class TestGenerate:

    def test_valid_first_try(self):
        client = ScriptedClient("feat(cli): add split flag")
        assert client.generate("prompt").content == "feat(cli): add split flag"
        assert client.calls == [("prompt", SYSTEM_PROMPT)]

    def test_retries_until_valid(self):
        client = ScriptedClient("nonsense reply here", "fix(git): quote paths")
        response = client.generate("prompt")

        assert response.content == "fix(git): quote paths"
        assert len(client.calls) == 2
        assert "previous response was invalid" in client.calls[1][0]

    def test_returns_last_response_after_max_retries(self):
        client = ScriptedClient(*["still not a commit message"] * 3)
        assert client.generate("prompt").content == "still not a commit message"
        assert len(client.calls) == LLMClient.MAX_RETRIES + 1

    def test_no_validator_means_single_call(self):
        client = ScriptedClient('[{"ids": ["a:1"], "message": "x"}]')
        client.generate("prompt", system="group these", validator=None)
        assert client.calls == [("prompt", "group these")]

    def test_temperature_and_tokens(self):
        client = ScriptedClient()
        assert (client.temperature, client.max_tokens) == (LLMClient.DEFAULT_TEMPERATURE, LLMClient.DEFAULT_MAX_TOKENS)
        tuned = OpenRouterClient(api_key="k", temperature=0, max_tokens=64)
        assert (tuned.temperature, tuned.max_tokens) == (0, 64)


# ---------------------------------------------------------------------------
# OpenRouter
# ---------------------------------------------------------------------------

class TestOpenRouterClient:

    @pytest.fixture
    def http(self, monkeypatch):
        """Captured urllib requests; set ``reply`` to control the answer."""
        state = SimpleNamespace(requests=[], reply=None)

        def fake_urlopen(req, timeout=None):
            state.requests.append(req)
            if isinstance(state.reply, Exception):
                raise state.reply
            return FakeHTTPResponse(json.dumps(state.reply).encode("utf-8"))

        state.reply = {
            "model": "openai/gpt-4o-mini",
            "choices": [{"message": {"content": "  feat(x): add y  "}}],
            "usage": {"total_tokens": 42},
        }
        monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
        return state

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        with pytest.raises(LLMError, match="OPENROUTER_API_KEY"):
            OpenRouterClient()

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")
        assert OpenRouterClient().api_key == "env-key"

    def test_request_shape(self, http):
        client = OpenRouterClient(api_key="secret", model="openai/gpt-4o-mini", temperature=0.2, max_tokens=100)
        response = client.generate("the prompt", system="the system", validator=None)

        req = http.requests[0]
        body = json.loads(req.data.decode("utf-8"))
        assert req.full_url == OpenRouterClient.API_URL
        assert req.get_header("Authorization") == "Bearer secret"
        assert req.get_header("X-title") == "aicmt"
        assert body["messages"] == [
            {"role": "system", "content": "the system"},
            {"role": "user", "content": "the prompt"},
        ]
        assert (body["temperature"], body["max_tokens"]) == (0.2, 100)
        assert response.content == "feat(x): add y"
        assert response.tokens_used == 42

    def test_empty_content_raises(self, http):
        http.reply = {"choices": [{"message": {"content": "   "}}]}
        with pytest.raises(LLMError, match="empty content"):
            OpenRouterClient(api_key="k").generate("p", validator=None)

    def test_missing_choices_raises(self, http):
        http.reply = {"error": "nope"}
        with pytest.raises(LLMError):
            OpenRouterClient(api_key="k").generate("p", validator=None)

    def test_http_error(self, http):
        http.reply = urllib.error.HTTPError(
            OpenRouterClient.API_URL, 429, "Too Many Requests", {}, io.BytesIO(b'{"error": "rate limited"}'),
        )
        with pytest.raises(LLMError, match="429"):
            OpenRouterClient(api_key="k").generate("p", validator=None)

    def test_unauthorized(self, http):
        http.reply = urllib.error.HTTPError(OpenRouterClient.API_URL, 401, "Unauthorized", {}, io.BytesIO(b""))
        with pytest.raises(LLMError, match="Invalid API key"):
            OpenRouterClient(api_key="k").generate("p", validator=None)

    def test_network_error(self, http):
        http.reply = urllib.error.URLError("Name or service not known")
        with pytest.raises(LLMError, match="request failed"):
            OpenRouterClient(api_key="k").generate("p", validator=None)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------

class TestGetClient:

    def test_unknown_provider(self):
        with pytest.raises(LLMError, match="Unknown provider"):
            get_client("gpt-magic")

    def test_explicit_provider_gets_options(self):
        client = get_client("openrouter", "some/model", temperature=0.5, max_tokens=77, api_key="k")
        assert isinstance(client, OpenRouterClient)
        assert (client.model, client.temperature, client.max_tokens) == ("some/model", 0.5, 77)

    def test_auto_falls_through_unavailable_providers(self, monkeypatch):
        tried = []

        def unavailable(name):
            def _make(**options):
                tried.append(name)
                raise LLMError(f"{name} unavailable")
            return _make

        monkeypatch.setitem(llm.PROVIDERS, "ollama", unavailable("ollama"))
        monkeypatch.setitem(llm.PROVIDERS, "claude", unavailable("claude"))

        client = get_client("auto", api_key="k")

        assert isinstance(client, OpenRouterClient)
        assert tried == ["ollama"]

    def test_auto_nothing_available(self, monkeypatch):
        def unavailable(**options):
            raise LLMError("no")

        for name in ("ollama", "openrouter", "claude"):
            monkeypatch.setitem(llm.PROVIDERS, name, unavailable)
        with pytest.raises(LLMError, match="No LLM provider available"):
            get_client("auto")
