"""
LLM utilities: provider settings, prompts, and client wrappers.
"""

from .settings import LLMSettings, resolve_llm_settings
from .client import generate_text
from .prompts import (
    build_intent_system_prompt,
    build_intent_user_prompt,
    build_site_system_prompt,
    build_site_user_prompt,
)

__all__ = [
    "LLMSettings",
    "resolve_llm_settings",
    "generate_text",
    "build_intent_system_prompt",
    "build_intent_user_prompt",
    "build_site_system_prompt",
    "build_site_user_prompt",
]
