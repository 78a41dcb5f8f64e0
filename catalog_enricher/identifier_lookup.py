"""
Optional GTIN/barcode lookup for catalog rows.

Google Shopping prefers a GTIN per variant. Rows that already carry one are
returned as-is; otherwise, when enabled, the UPCitemdb search endpoint is
queried by title (and vendor). The lookup never affects enrichment.
"""

import logging
from typing import Dict, Optional

import requests

from .product_utils import cell, get_gtin, get_title

DEFAULT_UPCITEMDB_URL = "https://api.upcitemdb.com/prod/trial/search"


def search_upcitemdb(query: str, api_url: str = DEFAULT_UPCITEMDB_URL, timeout: float = 15) -> Optional[str]:
    """
    Search UPCitemdb and return the first item's EAN/UPC.

    Returns:
        Barcode string, or None when nothing was found or the request failed
    """
    try:
        response = requests.get(
            api_url,
            params={"s": query, "match_mode": "0", "type": "product"},
            headers={"Accept": "application/json"},
            timeout=timeout
        )
        response.raise_for_status()
        result = response.json()
    except requests.exceptions.RequestException as e:
        logging.warning(f"Network error looking up identifier for '{query}': {e}")
        return None
    except ValueError as e:
        logging.warning(f"Malformed identifier lookup response for '{query}': {e}")
        return None

    items = result.get("items") if isinstance(result, dict) else None
    items = items or []
    if not items:
        logging.debug(f"No identifier found for '{query}'")
        return None

    item = items[0]
    return item.get("ean") or item.get("upc") or None


def lookup_identifier(product: Dict, cfg: Optional[Dict] = None) -> Optional[str]:
    """
    Find a GTIN for a product.

    Args:
        product: Catalog record
        cfg: Configuration; ENABLE_IDENTIFIER_LOOKUP gates remote lookups

    Returns:
        GTIN/barcode or None
    """
    cfg = cfg or {}

    existing = get_gtin(product)
    if existing:
        return existing

    if not cfg.get("ENABLE_IDENTIFIER_LOOKUP", False):
        return None

    title = get_title(product)
    if not title:
        return None

    query = f"{cell(product, 'Vendor')} {title}".strip()
    return search_upcitemdb(
        query,
        cfg.get("UPCITEMDB_URL", DEFAULT_UPCITEMDB_URL),
        timeout=float(cfg.get("REQUEST_TIMEOUT", 15))
    )
