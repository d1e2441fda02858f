"""OpenRouter LLM Client (OpenAI-compatible chat completions)"""

import os
import json
import socket
import urllib.request
import urllib.error

from aicmt.llm.base import LLMClient, LLMResponse, LLMError


class OpenRouterClient(LLMClient):
    """OpenRouter client. Requires OPENROUTER_API_KEY or a configured key."""

    DEFAULT_MODEL = "openai/gpt-4o-mini"
    API_URL = "https://openrouter.ai/api/v1/chat/completions"
    DEFAULT_TIMEOUT = 120
    DEFAULT_TEMPERATURE = 0.2

    def __init__(self, model: str | None = None, api_key: str | None = None,
                 temperature: float | None = None, max_tokens: int | None = None):
        super().__init__(temperature=temperature, max_tokens=max_tokens)
        self.api_key = api_key or os.environ.get("OPENROUTER_API_KEY")
        self.model = model or self.DEFAULT_MODEL
        self.timeout = int(os.environ.get("AICMT_TIMEOUT", self.DEFAULT_TIMEOUT))

        if not self.api_key:
            raise LLMError(
                "No API key found. Set OPENROUTER_API_KEY environment variable:\n"
                "  export OPENROUTER_API_KEY='your-key-here'"
            )

    @property
    def name(self) -> str:
        return f"OpenRouter ({self.model})"

    def _build_payload(self, prompt: str, system: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    def _complete(self, prompt: str, system: str) -> LLMResponse:
        data = json.dumps(self._build_payload(prompt, system)).encode('utf-8')
        req = urllib.request.Request(
            self.API_URL,
            data=data,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": "https://github.com/aicmt/aicmt",
                "X-Title": "aicmt",
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                body = response.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            if e.code == 401:
                raise LLMError("Invalid API key. Check your OPENROUTER_API_KEY.")
            detail = e.read().decode('utf-8', errors='replace').strip()
            raise LLMError(f"OpenRouter error ({e.code}): {detail or e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise LLMError(f"Request timed out after {self.timeout}s. Increase it with AICMT_TIMEOUT=300")
            raise LLMError(f"OpenRouter request failed: {e.reason}")
        except socket.timeout:
            raise LLMError(f"Request timed out after {self.timeout}s. Increase it with AICMT_TIMEOUT=300")

        return self._parse_body(body)

    def _parse_body(self, body: str) -> LLMResponse:
        try:
            data = json.loads(body)
        except json.JSONDecodeError:
            raise LLMError("OpenRouter returned invalid JSON")

        choices = data.get("choices") or [{}]
        content = ((choices[0] or {}).get("message") or {}).get("content") or ""
        if not content.strip():
            raise LLMError("OpenRouter returned empty content")

        usage = data.get("usage") or {}
        return LLMResponse(
            content=content.strip(),
            model=data.get("model", self.model),
            tokens_used=usage.get("total_tokens", 0),
        )
