"""Completion provider interface and factory.

Every provider exposes the same single capability:

    complete(prompt) -> generated text

Each concrete provider owns its SDK client and makes exactly one request per
call. There is no retry here: a failure propagates to the review pipeline,
which treats it as terminal for the run.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompletionProvider(ABC):
    DEFAULT_MODEL: str = ""

    model: str

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send one prompt and return the model's text. Raises on failure."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"


def get_provider(config: dict) -> CompletionProvider:
    """Build the provider selected by ``config["provider"]``.

    Imports are local so only the chosen provider's SDK needs to be installed.
    """
    name = config.get("provider", "openai")
    model = config.get("model") or None
    max_tokens = config.get("max_tokens", 2000)
    temperature = config.get("temperature", 0.3)

    if name == "openai":
        from prverdict_core.providers.openai import OpenAIProvider

        return OpenAIProvider(config["openai_api_key"], model=model, max_tokens=max_tokens, temperature=temperature)
    if name == "anthropic":
        from prverdict_core.providers.anthropic import AnthropicProvider

        return AnthropicProvider(
            config["anthropic_api_key"], model=model, max_tokens=max_tokens, temperature=temperature
        )
    if name == "gemini":
        from prverdict_core.providers.gemini import GeminiProvider

        return GeminiProvider(config["gemini_api_key"], model=model, max_tokens=max_tokens, temperature=temperature)
    if name == "ollama":
        from prverdict_core.providers.ollama import OllamaProvider

        return OllamaProvider(
            base_url=config.get("ollama_base_url"), model=model, max_tokens=max_tokens, temperature=temperature
        )
    raise ValueError(f"Unknown model provider: {name!r}. Choose 'openai', 'anthropic', 'gemini' or 'ollama'.")
