"""
Claude API transport for description generation.
"""

import logging

import anthropic


def complete_with_claude(
    prompt: str,
    api_key: str,
    model: str,
    max_tokens: int = 400,
    temperature: float = 0.7,
    timeout: float = 60
) -> str:
    """
    Send a single-turn prompt to Claude and return the text response.

    Raises:
        anthropic.APIError: On any API failure (caller decides how to recover)
    """
    client = anthropic.Anthropic(api_key=api_key, timeout=timeout)

    logging.info(f"Sending description request to Claude ({model})...")
    response = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[{
            "role": "user",
            "content": prompt
        }]
    )

    logging.info(f"✅ Claude API call successful")
    logging.debug(f"Response ID: {response.id}, stop reason: {response.stop_reason}")
    logging.debug(f"Token usage - Input: {response.usage.input_tokens}, Output: {response.usage.output_tokens}")

    if not response.content:
        return ""
    return response.content[0].text
