import os
from pathlib import Path
from typing import Optional

import yaml

PROVIDERS = ("openai", "anthropic", "gemini", "ollama")

DEFAULT_CONFIG: dict = {
    "provider": "openai",
    "model": None,  # None = provider default (see each provider's DEFAULT_MODEL)
    "max_tokens": 2000,
    "temperature": 0.3,
    "max_chars_per_file": 20000,
    "include": [],  # glob patterns; empty = built-in extension allow-list
    "exclude": [],  # glob patterns matched against the full path (e.g. "dist/**", "**/*.min.js")
    "post_comment": True,
    "stack": None,  # force a stack instead of detecting it (e.g. "django")
    "min_score_threshold": 7,
    "fail_on_low_score": False,
    "ollama_base_url": "http://localhost:11434",
}

_API_KEY_ENV = {
    "openai": ("openai_api_key", "OPENAI_API_KEY"),
    "anthropic": ("anthropic_api_key", "ANTHROPIC_API_KEY"),
    "gemini": ("gemini_api_key", "GEMINI_API_KEY"),
}


def load_config(config_path: str = ".prverdict.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prverdict.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "include": list(DEFAULT_CONFIG["include"]), "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    for key, env in _API_KEY_ENV.values():
        config[key] = os.environ.get(env)
    if os.environ.get("OLLAMA_BASE_URL"):
        config["ollama_base_url"] = os.environ["OLLAMA_BASE_URL"]

    return config


def require_credentials(config: dict) -> None:
    """Raise ValueError if the selected provider is unknown or its API key is missing."""
    provider = config.get("provider")
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown provider: {provider!r}. Choose one of: {', '.join(PROVIDERS)}.")
    if provider in _API_KEY_ENV:
        key, env = _API_KEY_ENV[provider]
        if not config.get(key):
            raise ValueError(f"{env} environment variable is not set.")
