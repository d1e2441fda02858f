"""Ollama LLM Client for Local Models"""

import os
import json
import http.client
import socket
import urllib.request
import urllib.error

from aicmt.llm.base import LLMClient, LLMResponse, LLMError


class OllamaClient(LLMClient):
    """Ollama client for local models. Requires: ollama serve"""

    DEFAULT_MODEL = "mistral:7b"
    DEFAULT_HOST = "http://localhost:11434"
    DEFAULT_TIMEOUT = 300  # CPU inference is slow

    def __init__(self, model: str | None = None, host: str | None = None,
                 temperature: float | None = None, max_tokens: int | None = None):
        super().__init__(temperature=temperature, max_tokens=max_tokens)
        self.model = model or self.DEFAULT_MODEL
        self.host = host or os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST)
        self.timeout = int(os.environ.get("AICMT_TIMEOUT", self.DEFAULT_TIMEOUT))
        self._verify_connection()

    @property
    def name(self) -> str:
        return f"Ollama ({self.model})"

    def _verify_connection(self) -> None:
        """Check if Ollama is running and accessible."""
        try:
            req = urllib.request.Request(f"{self.host}/api/tags")
            with urllib.request.urlopen(req, timeout=5):
                pass
        except (urllib.error.URLError, OSError):
            raise LLMError("Ollama not running. Start with: ollama serve")

    def _complete(self, prompt: str, system: str) -> LLMResponse:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "system": system,
            "stream": False,
            "keep_alive": "10m",
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }
        data = json.dumps(payload).encode('utf-8')
        req = urllib.request.Request(
            f"{self.host}/api/generate",
            data=data,
            headers={"Content-Type": "application/json"},
        )

        timeout_message = f"Request timed out after {self.timeout}s. Increase it with AICMT_TIMEOUT=600"
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                result = json.loads(response.read().decode('utf-8'))
        except urllib.error.HTTPError as e:
            # HTTPError must come before URLError (it's a subclass)
            if e.code == 404:
                raise LLMError(f"Model '{self.model}' not found. Run: ollama pull {self.model}")
            raise LLMError(f"Ollama error ({e.code}): {e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise LLMError(timeout_message)
            if "Connection refused" in str(e):
                raise LLMError("Ollama not running. Start with: ollama serve")
            raise LLMError(f"Ollama request failed: {e}")
        except socket.timeout:
            raise LLMError(timeout_message)
        except json.JSONDecodeError:
            raise LLMError("Invalid response from Ollama. Try a different model or a smaller change.")
        except http.client.HTTPException as e:
            raise LLMError(f"Incomplete response from Ollama: {e}. The model may have run out of memory.")
        except OSError as e:
            raise LLMError(f"Connection to Ollama lost: {e}. Check that 'ollama serve' is still running.")

        return LLMResponse(
            content=result.get("response", "").strip(),
            model=self.model,
            tokens_used=result.get("eval_count", 0),
        )
