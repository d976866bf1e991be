"""
Wrappers around OpenAI-compatible APIs and Google Gemini.
"""

from __future__ import annotations

import logging
import os
import re
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

import httpx
import openai
from openai import OpenAI

from ..errors import GenerationError
from .settings import LLMSettings

logger = logging.getLogger(__name__)


def generate_text(prompt: str, system_prompt: str, settings: LLMSettings) -> str:
    """
    Execute one LLM request and return the cleaned response text.

    Dispatches to either the Google Gemini client or the generic OpenAI-compatible
    client based on the settings. The call is bounded by ``settings.timeout_seconds``
    and is not retried.

    Args:
        prompt: The user prompt.
        system_prompt: The system prompt defining the persona and rules.
        settings: Configuration for the LLM provider.

    Returns:
        The generated text with any "thinking" blocks removed.

    Raises:
        GenerationError: If the request fails, times out, or yields no text.
    """
    logger.debug("LLM request – model=%s prompt=%r", settings.model, prompt[:500])
    if settings.is_google:
        text = _call_gemini(prompt, system_prompt, settings)
    else:
        text = _call_openai_compatible(prompt, system_prompt, settings)
    if not text:
        raise GenerationError(f"Model {settings.model} returned no usable text.")
    logger.debug("LLM response – model=%s chars=%d", settings.model, len(text))
    return text


def _call_openai_compatible(prompt: str, system_prompt: str, settings: LLMSettings) -> str:
    """Call an OpenAI-compatible Chat Completions endpoint and clean the result."""
    client = OpenAI(
        api_key=settings.api_key,
        base_url=settings.base_url,
        timeout=settings.timeout_seconds,
        max_retries=0,
    )
    try:
        response = client.chat.completions.create(
            model=settings.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            stream=False,
        )
    except openai.APITimeoutError as exc:
        raise GenerationError(
            f"{settings.provider} request timed out after {settings.timeout_seconds:g}s", retryable=True
        ) from exc
    except openai.APIConnectionError as exc:
        raise GenerationError(f"Could not reach {settings.provider}: {exc}", retryable=True) from exc
    except openai.APIError as exc:
        raise GenerationError(f"{settings.provider} request failed: {exc}") from exc

    _log_usage(settings.model, getattr(response, "usage", None))
    choice = response.choices[0] if response.choices else None
    message = choice.message if choice is not None else None
    cleaned = _clean_llm_output(_coerce_message_content(getattr(message, "content", None)))
    if not cleaned:
        logger.warning(
            "LLM response for model %s contained no usable text (finish_reason=%s).",
            settings.model,
            getattr(choice, "finish_reason", None),
        )
    return cleaned


@contextmanager
def _gemini_key_environment(api_key: str) -> Iterator[None]:
    """
    Hide GOOGLE_API_KEY while the Gemini client is built.

    The Google SDK prefers GOOGLE_API_KEY over the key it is given when both
    are present in the environment.
    """
    hidden = os.environ.pop("GOOGLE_API_KEY", None)
    previous = os.environ.get("GEMINI_API_KEY")
    os.environ["GEMINI_API_KEY"] = api_key
    try:
        yield
    finally:
        if hidden is not None:
            os.environ["GOOGLE_API_KEY"] = hidden
        if previous is None:
            os.environ.pop("GEMINI_API_KEY", None)
        else:
            os.environ["GEMINI_API_KEY"] = previous


def _call_gemini(prompt: str, system_prompt: str, settings: LLMSettings) -> str:
    """Invoke the Google Gemini SDK and return cleaned text."""
    from google import genai
    from google.genai import errors as genai_errors
    from google.genai import types

    with _gemini_key_environment(settings.api_key):
        client = genai.Client(
            api_key=settings.api_key,
            http_options=types.HttpOptions(timeout=int(settings.timeout_seconds * 1000)),
        )
    config = types.GenerateContentConfig(
        temperature=settings.temperature,
        max_output_tokens=settings.max_tokens,
        system_instruction=system_prompt,
    )
    try:
        response = client.models.generate_content(
            model=settings.model,
            contents=prompt,
            config=config,
        )
    except httpx.TimeoutException as exc:
        raise GenerationError(
            f"Gemini request timed out after {settings.timeout_seconds:g}s", retryable=True
        ) from exc
    except httpx.TransportError as exc:
        raise GenerationError(f"Could not reach Gemini: {exc}", retryable=True) from exc
    except genai_errors.APIError as exc:
        raise GenerationError(f"Gemini request failed: {exc}") from exc

    _log_usage(settings.model, getattr(response, "usage_metadata", None))
    text = (getattr(response, "text", None) or "").strip()
    if text:
        return _clean_llm_output(text)

    candidates = getattr(response, "candidates", None)
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) if content is not None else None
        if parts:
            text_value = getattr(parts[0], "text", None)
            if text_value:
                return _clean_llm_output(text_value)

    raise GenerationError(
        f"Gemini response was empty or blocked: {getattr(response, 'prompt_feedback', None)}"
    )


def _clean_llm_output(text: str) -> str:
    """
    Strip <think>...</think> blocks that reasoning models emit before the answer.
    """
    if not text:
        return ""
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL)
    return text.strip()


def _coerce_message_content(content: Any) -> str:
    """
    Normalize the various content payloads returned by OpenAI-compatible endpoints.

    Handles plain strings, structured content-part lists, and objects that expose a
    `.text` attribute.
    """
    if not content:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        parts: list[str] = []
        for item in content:
            if not item:
                continue
            if isinstance(item, str):
                parts.append(item)
                continue
            text_value = getattr(item, "text", None)
            if not text_value and isinstance(item, dict):
                text_value = item.get("text")
            if text_value:
                parts.append(str(text_value))
        return "\n".join(parts).strip()
    text_attr = getattr(content, "text", None)
    if text_attr:
        return str(text_attr)
    return str(content)


def _log_usage(model_name: str, usage: Any) -> None:
    """Log prompt/completion token counts for a call."""
    if not usage:
        logger.info("LLM usage – model=%s prompt_tokens=n/a completion_tokens=n/a total_tokens=n/a", model_name)
        return
    try:
        prompt_tokens, completion_tokens, total_tokens = _normalize_usage(usage)
    except ValueError as exc:
        logger.debug("Unable to normalize LLM usage data (%s): %s", type(usage), exc)
        return
    logger.info(
        "LLM usage – model=%s prompt_tokens=%s completion_tokens=%s total_tokens=%s",
        model_name,
        prompt_tokens,
        completion_tokens,
        total_tokens,
    )


def _normalize_usage(usage: Any) -> Tuple[int, int, int]:
    """Return (prompt_tokens, completion_tokens, total_tokens) for OpenAI or Gemini usage."""

    def _get_attr(obj: Any, attr: str) -> Optional[Any]:
        if isinstance(obj, dict):
            return obj.get(attr)
        return getattr(obj, attr, None)

    for prompt_key, completion_key, total_key in (
        ("prompt_tokens", "completion_tokens", "total_tokens"),
        ("input_tokens", "output_tokens", "total_tokens"),
        ("prompt_token_count", "candidates_token_count", "total_token_count"),
    ):
        prompt_tokens = _get_attr(usage, prompt_key)
        if prompt_tokens is None:
            continue
        completion_tokens = _get_attr(usage, completion_key) or 0
        total_tokens = _get_attr(usage, total_key) or (int(prompt_tokens) + int(completion_tokens))
        return int(prompt_tokens), int(completion_tokens), int(total_tokens)

    raise ValueError("Unsupported usage payload structure")
