"""
SEO and Google Shopping field derivation.
"""

import re
from typing import Dict

from .brand_profile import DEFAULT_PROFILE, BrandProfile
from .product_utils import cell, get_price, get_title, strip_html, get_raw_description

SEO_TITLE_LIMIT = 60
SEO_DESCRIPTION_LIMIT = 160

GOOGLE_SHOPPING_COLUMNS = (
    "Google Shopping / Google Product Category",
    "Google Shopping / Gender",
    "Google Shopping / Age Group",
    "Google Shopping / Condition",
    "Google Shopping / Custom Product",
    "Google Shopping / Custom Label 0",
    "Google Shopping / Custom Label 1",
    "Google Shopping / Custom Label 2",
    "Google Shopping / Custom Label 3",
    "Google Shopping / Custom Label 4",
)


def truncate(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters, ending in an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[:limit - 3] + "..."


def derive_seo(product: Dict, collection: str, profile: BrandProfile = DEFAULT_PROFILE) -> Dict[str, str]:
    """
    Build the SEO title and meta description.

    Returns:
        {"title": ..., "description": ...} within 60 and 160 characters
    """
    name = get_title(product) or cell(product, "Handle") or "Wellness Product"
    title = f"{name} - {profile.seo_title_suffix} | {profile.brand}"

    original = strip_html(get_raw_description(product, profile.description_columns))
    first_sentence = original.split(".")[0].strip() or name

    opening = profile.seo_openings.get(collection) or profile.seo_openings[profile.default_collection]
    description = f"{opening.format(name=name.lower())} {first_sentence}. {profile.seo_closing}"

    return {
        "title": truncate(title, SEO_TITLE_LIMIT),
        "description": truncate(description, SEO_DESCRIPTION_LIMIT),
    }


def detect_gender(title: str, profile: BrandProfile = DEFAULT_PROFILE) -> str:
    """male/female only when the title names one audience and not the other."""
    tokens = set(re.findall(r"[a-z]+(?:'s)?", title.lower()))
    is_male = bool(tokens & set(profile.male_markers))
    is_female = bool(tokens & set(profile.female_markers))
    if is_male and not is_female:
        return "male"
    if is_female and not is_male:
        return "female"
    return "unisex"


def price_tier(price: float, profile: BrandProfile = DEFAULT_PROFILE) -> str:
    for threshold, label in profile.price_tiers:
        if price > threshold:
            return label
    return profile.default_price_tier


def is_custom_product(product: Dict, profile: BrandProfile = DEFAULT_PROFILE) -> bool:
    text = f"{get_title(product)} {cell(product, 'Vendor')}".lower()
    return any(indicator in text for indicator in profile.custom_indicators)


def derive_taxonomy(product: Dict, collection: str, profile: BrandProfile = DEFAULT_PROFILE) -> Dict[str, str]:
    """
    Build the Google Shopping columns for a product.

    Unknown collections use the default collection's taxonomy entry.
    """
    entry = profile.taxonomy_entries.get(collection) or profile.taxonomy_entries[profile.default_collection]
    category, label_0, label_3 = entry

    return {
        "Google Shopping / Google Product Category": category,
        "Google Shopping / Gender": detect_gender(get_title(product), profile),
        "Google Shopping / Age Group": "adult",
        "Google Shopping / Condition": "new",
        "Google Shopping / Custom Product": "TRUE" if is_custom_product(product, profile) else "FALSE",
        "Google Shopping / Custom Label 0": label_0,
        "Google Shopping / Custom Label 1": price_tier(get_price(product), profile),
        "Google Shopping / Custom Label 2": cell(product, "Vendor")[:20],
        "Google Shopping / Custom Label 3": label_3,
        "Google Shopping / Custom Label 4": profile.label_4,
    }
