"""
Enriched record assembly.

enrich_product runs classification, description generation, SEO and taxonomy
derivation for one record and returns a new dict. The input record is never
modified; committing the result is the caller's decision.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from .brand_profile import DEFAULT_PROFILE, BrandProfile
from .classifier import classify_product
from .metadata import derive_seo, derive_taxonomy
from .product_utils import cell, get_raw_description, strip_html
from .voice import generate_description


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def snapshot_originals(product: Dict, profile: BrandProfile = DEFAULT_PROFILE) -> Dict[str, str]:
    """Capture the pre-enrichment values that enrichment replaces on export."""
    return {
        "original_description": strip_html(get_raw_description(product, profile.description_columns)),
        "original_tags": cell(product, "Tags"),
        "original_seo_title": cell(product, "SEO Title"),
        "original_seo_description": cell(product, "SEO Description"),
    }


def enrich_product(
    product: Dict,
    index: int = 0,
    cfg: Optional[Dict] = None,
    profile: BrandProfile = DEFAULT_PROFILE,
    generate_fn: Callable[[str, Dict], str] = None
) -> Dict:
    """
    Build the enriched version of a catalog record.

    Args:
        product: Catalog record (left untouched)
        index: Position in the batch, selects the prompt template
        cfg: Configuration dictionary for the remote generator
        profile: Brand profile
        generate_fn: Optional remote generation override

    Returns:
        A new record with snapshots, new content and Google Shopping fields
    """
    title = cell(product, "Title")

    collection = classify_product(product, profile)
    logging.info(f"Detected collection for '{title}': {collection}")

    new_description = generate_description(product, collection, index, cfg, profile, generate_fn)
    seo = derive_seo(product, collection, profile)
    taxonomy = derive_taxonomy(product, collection, profile)
    new_tags = ", ".join(profile.tags_for(collection))

    enriched = dict(product)
    enriched.update(snapshot_originals(product, profile))
    enriched.update(taxonomy)
    enriched.update({
        "enriched": True,
        "enriched_at": utc_timestamp(),
        "detected_collection": collection,
        "new_description": new_description,
        "new_tags": new_tags,
        "new_seo_title": seo["title"],
        "new_seo_description": seo["description"],
    })

    return enriched
