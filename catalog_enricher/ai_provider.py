"""
AI Provider abstraction layer - supports both Claude and OpenAI APIs.
Routes description requests to the appropriate provider based on configuration.
"""

import logging
from typing import Dict

from .config import resolve_api_key
from . import claude_api
from . import openai_api


PROVIDER_NAMES = {
    "claude": "Claude",
    "openai": "OpenAI",
}


class GenerationError(RuntimeError):
    """Remote text generation failed or is unavailable."""


def strip_code_fences(text: str) -> str:
    """Remove a markdown code block wrapper if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split('\n')
        if lines[-1].strip() == "```":
            lines = lines[1:-1]
        else:
            lines = lines[1:]
        text = '\n'.join(lines).strip()
    return text


def generate_text(prompt: str, cfg: Dict) -> str:
    """
    Generate text for a prompt with the configured provider.

    Args:
        prompt: Complete instruction string
        cfg: Configuration dictionary

    Returns:
        Response text with code fences removed

    Raises:
        GenerationError: Missing credential, unknown provider, API failure or
            empty response
    """
    provider = cfg.get("AI_PROVIDER", "openai").lower()
    if provider not in PROVIDER_NAMES:
        raise GenerationError(f"Unknown AI provider: {provider}. Must be 'claude' or 'openai'.")

    provider_name = PROVIDER_NAMES[provider]
    api_key = resolve_api_key(cfg, provider)
    if not api_key:
        raise GenerationError(f"{provider_name} API key not configured")

    max_tokens = int(cfg.get("MAX_TOKENS", 400))
    temperature = float(cfg.get("TEMPERATURE", 0.7))
    timeout = float(cfg.get("REQUEST_TIMEOUT", 60))

    try:
        if provider == "claude":
            text = claude_api.complete_with_claude(
                prompt,
                api_key,
                cfg.get("CLAUDE_MODEL", "claude-sonnet-4-5-20250929"),
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout
            )
        else:
            text = openai_api.complete_with_openai(
                prompt,
                api_key,
                cfg.get("OPENAI_MODEL", "gpt-4o-mini"),
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout
            )
    except Exception as e:
        logging.error(f"{provider_name} API error: {type(e).__name__}: {e}")
        raise GenerationError(f"{provider_name} request failed: {e}") from e

    if not isinstance(text, str):
        raise GenerationError(f"{provider_name} returned a malformed response")

    text = strip_code_fences(text)
    if not text:
        raise GenerationError(f"{provider_name} returned an empty description")

    return text
