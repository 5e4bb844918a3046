from __future__ import annotations

from prverdict_core.providers.base import CompletionProvider


class GeminiProvider(CompletionProvider):
    DEFAULT_MODEL = "gemini-2.5-flash"

    def __init__(self, api_key: str, model: str | None = None, max_tokens: int = 2000, temperature: float = 0.3):
        try:
            from google import genai
        except ImportError:
            raise ImportError(
                "The 'google-genai' package is required for this provider. "
                "Install it with: pip install 'prverdict[gemini]'"
            )
        self.client = genai.Client(api_key=api_key)
        self.model = model or self.DEFAULT_MODEL
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str) -> str:
        from google.genai import types

        response = self.client.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                # Asking for JSON directly; the parser still tolerates fenced output.
                response_mime_type="application/json",
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
        )
        return response.text or ""
