"""Ollama provider: talks to a local or self-hosted Ollama server over HTTP.

No API key is involved; the server URL comes from ``ollama_base_url`` in the
config (or ``OLLAMA_BASE_URL``).
"""

from __future__ import annotations

import requests

from prverdict_core.providers.base import CompletionProvider


class OllamaProvider(CompletionProvider):
    DEFAULT_MODEL = "llama3.2"
    DEFAULT_BASE_URL = "http://localhost:11434"
    TIMEOUT = 300

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
    ):
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.model = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        try:
            response = requests.post(f"{self.base_url}/api/chat", json=payload, timeout=self.TIMEOUT)
            if response.status_code == 404:
                raise RuntimeError(f"Model '{self.model}' not found. Run: ollama pull {self.model}")
            response.raise_for_status()
        except requests.exceptions.ConnectionError:
            raise ConnectionError(f"Cannot connect to Ollama at {self.base_url}. Ensure Ollama is running: 'ollama serve'")
        except requests.exceptions.Timeout:
            raise TimeoutError(f"Ollama request timed out after {self.TIMEOUT}s.")
        except requests.exceptions.HTTPError as e:
            raise RuntimeError(f"Ollama HTTP error: {e.response.status_code} - {e.response.text}")
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Ollama request failed: {e}")

        return response.json().get("message", {}).get("content", "")
