"""
Helpers to determine which LLM/provider to use for each generation step.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from ..config import ConfigError

DEFAULT_LLM = "gemini-2.5-flash"


@dataclass
class LLMSettings:
    """
    Configuration for an LLM provider.

    Attributes:
        model: Model identifier (e.g., "gpt-4o-mini").
        api_key: API key for authentication.
        provider: "openai", "openrouter", or "gemini".
        base_url: Optional custom API base URL.
        is_google: True if using the Google GenAI SDK.
        temperature: Sampling temperature.
        max_tokens: Maximum output tokens.
        timeout_seconds: Upper bound for a single request.
    """
    model: str
    api_key: str
    provider: str
    base_url: Optional[str] = None
    is_google: bool = False
    temperature: float = 0.4
    max_tokens: int = 8000
    timeout_seconds: float = 120.0


def resolve_llm_settings(
    choice: Optional[str],
    *,
    temperature: float = 0.4,
    max_tokens: int = 8000,
    timeout_seconds: float = 120.0,
) -> LLMSettings:
    """
    Map a model choice to provider settings.

    Uses `choice`, then the `SITESMITH_DEFAULT_LLM` env var, then DEFAULT_LLM.

    Args:
        choice: Model string from the configuration (may be None).
        temperature: Sampling temperature for the call.
        max_tokens: Output token budget for the call.
        timeout_seconds: Request timeout for the call.

    Returns:
        An LLMSettings object.

    Raises:
        ConfigError: If the model is unknown or its API key is missing.
    """
    base_choice = choice or os.environ.get("SITESMITH_DEFAULT_LLM") or DEFAULT_LLM
    choice = base_choice.strip()
    choice_lower = choice.lower()
    common = {"temperature": temperature, "max_tokens": max_tokens, "timeout_seconds": timeout_seconds}

    # Direct Google Gemini SDK; OpenRouter-style "google/gemini-*" maps down to "gemini-*".
    if choice_lower.startswith("gemini-") or choice_lower.startswith("google/gemini-"):
        model_name = choice
        if choice_lower.startswith("google/gemini-"):
            model_name = choice.split("/", 1)[1]
        return LLMSettings(
            model=model_name,
            api_key=_require_env("GEMINI_API_KEY"),
            provider="gemini",
            is_google=True,
            **common,
        )

    if choice_lower.startswith("or:"):
        return LLMSettings(
            model=choice[3:],
            api_key=_require_env("OPENROUTER_API_KEY"),
            provider="openrouter",
            base_url="https://openrouter.ai/api/v1",
            **common,
        )

    if choice_lower.startswith("gpt-") or (choice_lower.startswith("o") and len(choice_lower) > 1 and choice_lower[1].isdigit()):
        return LLMSettings(
            model=choice,
            api_key=_require_env("OPENAI_API_KEY"),
            provider="openai",
            **common,
        )

    raise ConfigError(
        f"Unknown LLM '{choice}'. Use gemini-* for Gemini, gpt-*/o* for OpenAI, or prefix OpenRouter models with 'or:'."
    )


def _require_env(name: str) -> str:
    """Fetch an environment variable or raise a descriptive error."""
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"Environment variable {name} is required for the selected LLM.")
    return value
