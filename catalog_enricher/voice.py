"""
Brand-voice description generation.

The remote model rewrites the vendor description; its output is normalized to
the brand vocabulary. Any failure of the remote call resolves to a local
per-collection template, so generate_description never raises.
"""

import logging
import re
from typing import Callable, Dict, Optional

from .ai_provider import GenerationError, generate_text
from .brand_profile import DEFAULT_PROFILE, BrandProfile
from .product_utils import get_description, get_title

TERMINAL_PUNCTUATION = (".", "!", "?")


def build_style_guide(collection: str, profile: BrandProfile) -> str:
    banned = ", ".join(f'"{word}"' for word in profile.banned_openers)
    return profile.style_guide.format(
        banned=banned,
        banned_lower=", ".join(f'"{word.lower()}"' for word in profile.banned_openers),
        openers=", ".join(f'"{word}"' for word in profile.preferred_openers),
        collection=collection,
        length=profile.target_length,
        closing=profile.closing
    )


def select_prompt_template(index: int, profile: BrandProfile) -> str:
    """Pick a template by batch position so reruns send identical prompts."""
    templates = profile.prompt_templates
    return templates[index % len(templates)]


def build_description_prompt(
    title: str,
    description: str,
    collection: str,
    index: int = 0,
    profile: BrandProfile = DEFAULT_PROFILE
) -> str:
    """
    Build the rewrite instruction for one product.

    Args:
        title: Product title
        description: Plain-text original description
        collection: Detected collection name
        index: Position of the product in the batch (selects the template)
        profile: Brand profile

    Returns:
        Formatted prompt string
    """
    template = select_prompt_template(index, profile)
    return template.format(
        brand=profile.brand,
        title=title,
        description=description,
        collection=collection,
        style_guide=build_style_guide(collection, profile)
    )


def ensure_terminal_punctuation(text: str) -> str:
    text = text.rstrip()
    if text and not text.endswith(TERMINAL_PUNCTUATION):
        text += "."
    return text


def apply_brand_voice(text: str, transforms: Dict[str, str]) -> str:
    """
    Replace generic words with brand vocabulary and close the last sentence.

    Matching is case-insensitive and whole-word ("helps" changes, "helpship"
    does not).
    """
    result = text
    for original, replacement in transforms.items():
        pattern = re.compile(rf"\b{re.escape(original)}\b", re.IGNORECASE)
        result = pattern.sub(lambda _m, r=replacement: r, result)
    return ensure_terminal_punctuation(result)


def fallback_description(product: Dict, collection: str, profile: BrandProfile = DEFAULT_PROFILE) -> str:
    """Deterministic description used when remote generation is unavailable."""
    title = get_title(product) or "wellness essential"
    template = profile.fallback_templates.get(collection) or profile.fallback_templates[profile.default_collection]
    text = template.format(title=title, collection=collection, closing=profile.closing)
    return ensure_terminal_punctuation(text)


def generate_description(
    product: Dict,
    collection: str,
    index: int = 0,
    cfg: Optional[Dict] = None,
    profile: BrandProfile = DEFAULT_PROFILE,
    generate_fn: Callable[[str, Dict], str] = None
) -> str:
    """
    Produce the new marketing description for a product.

    Args:
        product: Catalog record
        collection: Detected collection
        index: Position in the batch
        cfg: Configuration dictionary (provider, keys, model settings)
        profile: Brand profile
        generate_fn: Remote generation callable, defaults to ai_provider.generate_text

    Returns:
        Brand-voice description; the fallback template on any remote failure
    """
    cfg = cfg or {}
    generate_fn = generate_fn or generate_text

    title = get_title(product)
    original = get_description(product, profile.description_columns)
    prompt = build_description_prompt(title, original, collection, index, profile)
    logging.debug(f"Description prompt (first 300 chars):\n{prompt[:300]}...")

    try:
        generated = generate_fn(prompt, cfg)
        if not isinstance(generated, str) or not generated.strip():
            raise GenerationError("empty response")
    except GenerationError as e:
        logging.warning(f"Using fallback description for '{title}': {e}")
        return fallback_description(product, collection, profile)
    except Exception as e:
        logging.error(f"Unexpected generation failure for '{title}', using fallback: {e}", exc_info=True)
        return fallback_description(product, collection, profile)

    return apply_brand_voice(generated.strip(), profile.voice_transforms)
