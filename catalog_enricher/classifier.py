"""
Collection detection for catalog rows.

Two deterministic strategies map product text to one of the five collections:

- first_match: keyword groups are tested in a fixed priority order and the
  first group with any substring hit wins.
- scoring: every collection's keywords are summed by character length over a
  wider search text; the strictly highest score wins.

Both are total: text that matches nothing gets the default collection.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from .brand_profile import DEFAULT_PROFILE, BrandProfile
from .product_utils import cell, get_description, get_title


def classify_first_match(
    title: str,
    description: str,
    rules: List[Tuple[str, List[str]]],
    default: str
) -> str:
    """
    Return the first collection in priority order with a keyword hit.

    Args:
        title: Product title
        description: Plain-text description
        rules: Ordered (collection, keywords) pairs
        default: Collection returned when nothing matches

    Returns:
        Collection name
    """
    text = f"{title or ''} {description or ''}".lower()

    for collection, keywords in rules:
        if any(keyword in text for keyword in keywords):
            return collection

    return default


def score_collections(search_text: str, collections: Dict[str, Dict[str, List[str]]]) -> Dict[str, int]:
    """Sum the length of every keyword found in the search text, per collection."""
    text = (search_text or "").lower()
    scores = {}
    for collection, entry in collections.items():
        scores[collection] = sum(len(keyword) for keyword in entry["keywords"] if keyword in text)
    return scores


def classify_by_score(
    search_text: str,
    collections: Dict[str, Dict[str, List[str]]],
    default: str
) -> str:
    """Return the highest-scoring collection; ties go to the earlier collection."""
    scores = score_collections(search_text, collections)

    best, best_score = default, 0
    for collection, score in scores.items():
        if score > best_score:
            best, best_score = collection, score

    logging.debug(f"Collection scores: {scores} -> {best}")
    return best


def detect_collection(
    title: str,
    description: str,
    profile: BrandProfile = DEFAULT_PROFILE,
    extra_fields: Iterable[str] = ()
) -> str:
    """
    Classify product text with the profile's configured strategy.

    extra_fields (vendor, product type, tags) only widen the scoring
    strategy's search text; first-match looks at title and description.
    """
    if profile.classifier_strategy == "scoring":
        search_text = " ".join([title or "", description or ""] + [f for f in extra_fields if f])
        return classify_by_score(search_text, profile.collections, profile.default_collection)

    return classify_first_match(title, description, profile.priority_rules, profile.default_collection)


def classify_product(product: Dict, profile: BrandProfile = DEFAULT_PROFILE) -> str:
    """Classify a catalog record."""
    extra = [cell(product, "Vendor"), cell(product, "Type"), cell(product, "Tags")]
    return detect_collection(
        get_title(product),
        get_description(product, profile.description_columns),
        profile,
        extra_fields=extra
    )
