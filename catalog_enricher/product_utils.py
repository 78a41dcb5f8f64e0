"""
Product utility functions for reading Shopify CSV rows.

Every lookup that depends on raw export column names lives here, so the rest
of the pipeline never branches on column names directly.
"""

import re
from html.parser import HTMLParser
from typing import Dict, List, Optional

# Bookkeeping keys added by the enricher; never exported.
INTERNAL_FIELDS = (
    "id",
    "enriched",
    "enriched_at",
    "detected_collection",
    "original_description",
    "original_tags",
    "original_seo_title",
    "original_seo_description",
    "new_description",
    "new_tags",
    "new_seo_title",
    "new_seo_description",
)

ID_COLUMNS = ["ID", "Id"]
PRICE_COLUMNS = ["Variant Price", "Price"]
PRICE_PATTERN = re.compile(r"\s*[-+]?(?:\d+(?:\.\d*)?|\.\d+)")
GTIN_COLUMNS = ["Variant Barcode", "Barcode", "GTIN", "UPC", "EAN"]


class HTMLTextExtractor(HTMLParser):
    """Collect the text content of an HTML fragment, block tags become spaces."""

    BLOCK_TAGS = {"p", "br", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6", "tr"}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts = []

    def handle_starttag(self, tag, attrs):
        if tag in self.BLOCK_TAGS:
            self.parts.append(" ")

    def handle_endtag(self, tag):
        if tag in self.BLOCK_TAGS:
            self.parts.append(" ")

    def handle_data(self, data):
        self.parts.append(data)

    def get_text(self) -> str:
        return re.sub(r"\s+", " ", "".join(self.parts)).strip()


def strip_html(html) -> str:
    """
    Convert an HTML description to plain text.

    Args:
        html: HTML string (or any value read from a CSV cell)

    Returns:
        Whitespace-collapsed plain text, empty string for empty input
    """
    if html is None:
        return ""
    html = str(html)
    if not html.strip():
        return ""

    parser = HTMLTextExtractor()
    parser.feed(html)
    parser.close()
    return parser.get_text()


def cell(product: Dict, column: str) -> str:
    """Return a column value as a stripped string ('' for missing/None)."""
    value = product.get(column)
    if value is None:
        return ""
    return str(value).strip()


def first_populated(product: Dict, columns: List[str]) -> str:
    """Return the first non-empty value among candidate columns."""
    for column in columns:
        value = cell(product, column)
        if value:
            return value
    return ""


def get_title(product: Dict) -> str:
    return cell(product, "Title")


def get_raw_description(product: Dict, columns: List[str]) -> str:
    """Raw (possibly HTML) description from the first populated candidate column."""
    return first_populated(product, columns)


def get_description(product: Dict, columns: List[str]) -> str:
    """
    Plain-text original description.

    Falls back to a minimal placeholder built from the title when no candidate
    column is populated.
    """
    text = strip_html(get_raw_description(product, columns))
    if text:
        return text
    title = get_title(product) or cell(product, "Handle") or "Wellness product"
    return f"{title}."


def get_price(product: Dict) -> float:
    """
    Parse the variant price from its leading number ("12.99 USD" -> 12.99).

    Missing or non-numeric values count as 0.
    """
    raw = first_populated(product, PRICE_COLUMNS)
    match = PRICE_PATTERN.match(raw.replace("$", "").replace(",", ""))
    if not match:
        return 0.0
    return float(match.group(0))


def get_gtin(product: Dict) -> Optional[str]:
    """Return an existing GTIN/barcode (digits only) or None."""
    raw = first_populated(product, GTIN_COLUMNS)
    # Spreadsheet exports often prefix barcodes with a quote to keep zeros
    digits = re.sub(r"\D", "", raw)
    if len(digits) in (8, 12, 13, 14):
        return digits
    return None


def product_key(product: Dict, index: int) -> str:
    """Identity key: handle, else catalog ID, else a positional key."""
    handle = cell(product, "Handle")
    if handle:
        return handle
    catalog_id = first_populated(product, ID_COLUMNS)
    if catalog_id:
        return catalog_id
    return f"product_{index}"


def product_label(product: Dict, index: int) -> str:
    """Human-readable label used for progress reporting."""
    return get_title(product) or cell(product, "Handle") or f"Product {index + 1}"
