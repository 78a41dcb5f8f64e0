"""
OpenAI API transport for description generation.
"""

import logging

from openai import OpenAI


def complete_with_openai(
    prompt: str,
    api_key: str,
    model: str,
    max_tokens: int = 400,
    temperature: float = 0.7,
    timeout: float = 60
) -> str:
    """
    Send a single-turn prompt to the chat completions endpoint.

    Raises:
        openai.OpenAIError: On any API failure (caller decides how to recover)
    """
    client = OpenAI(api_key=api_key, timeout=timeout)

    logging.info(f"Sending description request to OpenAI ({model})...")
    response = client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        max_tokens=max_tokens,
        temperature=temperature
    )

    logging.info(f"✅ OpenAI API call successful")
    if response.usage is not None:
        logging.debug(f"Token usage - Prompt: {response.usage.prompt_tokens}, Completion: {response.usage.completion_tokens}")

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""
