"""
Shopify CSV import and export.
"""

import csv
import logging
import os
from datetime import date
from typing import Dict, Iterable, List, Optional

from .metadata import GOOGLE_SHOPPING_COLUMNS
from .product_utils import INTERNAL_FIELDS, cell, product_key

TRACKING_COLUMNS = ("Enrichment Status", "Detected Collection", "Enriched Date")

# Columns replaced by enriched values on export, with the record keys they come from
OVERWRITTEN_COLUMNS = (
    ("Body (HTML)", "new_description", "original_description"),
    ("Tags", "new_tags", "original_tags"),
    ("SEO Title", "new_seo_title", "original_seo_title"),
    ("SEO Description", "new_seo_description", "original_seo_description"),
)


class CatalogError(ValueError):
    """The input file cannot become a catalog."""


class ExportError(ValueError):
    """There is nothing to export."""


def read_csv_rows(path: str) -> List[Dict[str, str]]:
    """
    Read a CSV file into a list of row dictionaries (values kept as strings).

    Raises:
        CatalogError: Missing file, wrong extension, unparsable or empty CSV
    """
    if not path.lower().endswith(".csv"):
        raise CatalogError("Please upload a CSV file.")
    if not os.path.exists(path):
        raise CatalogError(f"Input file not found: {path}")

    try:
        with open(path, "r", newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames:
                raise CatalogError("The CSV file appears to be empty.")
            rows = []
            for line_no, row in enumerate(reader, start=2):
                if None in row:
                    logging.warning(f"CSV line {line_no} has more cells than the header; extra cells dropped")
                    row.pop(None)
                # Blank lines come back as all-empty rows
                if not any((value or "").strip() for value in row.values()):
                    continue
                rows.append({key: (value if value is not None else "") for key, value in row.items()})
    except (csv.Error, UnicodeDecodeError) as e:
        raise CatalogError(f"Error reading CSV file: {e}") from e

    if not rows:
        raise CatalogError("The CSV file appears to be empty.")

    logging.info(f"Read {len(rows)} rows from {path}")
    return rows


def inherit_variant_titles(rows: List[Dict]) -> None:
    """Give variant rows without a Title the title of their handle's first titled row."""
    titles = {}
    for row in rows:
        handle, title = cell(row, "Handle"), cell(row, "Title")
        if handle and title and handle not in titles:
            titles[handle] = title

    for row in rows:
        handle = cell(row, "Handle")
        if handle and not cell(row, "Title") and handle in titles:
            row["Title"] = titles[handle]


def load_catalog(rows: List[Dict]) -> List[Dict]:
    """
    Turn parsed rows into catalog records.

    Each record gets a unique identity key ('id') and enrichment bookkeeping.
    Input rows are copied, not modified.

    Raises:
        CatalogError: When there are no rows
    """
    if not rows:
        raise CatalogError("The CSV file appears to be empty.")

    records = [dict(row) for row in rows]
    inherit_variant_titles(records)

    seen = set()
    catalog = []
    for index, record in enumerate(records):
        key = product_key(record, index)
        if key in seen:
            key = f"{key}__{index}"
        seen.add(key)

        record["id"] = key
        record["enriched"] = False
        record["enriched_at"] = None
        catalog.append(record)

    logging.info(f"Loaded {len(catalog)} products")
    return catalog


def export_row(product: Dict, include_tracking: bool = False) -> Dict:
    """Flatten one record to its export row."""
    row = {key: value for key, value in product.items() if key not in INTERNAL_FIELDS}

    if product.get("enriched"):
        for column, new_key, original_key in OVERWRITTEN_COLUMNS:
            row[column] = product.get(new_key) or product.get(original_key) or ""
        for column in GOOGLE_SHOPPING_COLUMNS:
            row[column] = product.get(column) or ""

    if include_tracking:
        row["Enrichment Status"] = "Enriched" if product.get("enriched") else "Pending"
        row["Detected Collection"] = product.get("detected_collection") or ""
        row["Enriched Date"] = product.get("enriched_at") or ""

    return row


def export_rows(catalog: List[Dict], include_tracking: bool = False) -> List[Dict]:
    """
    Build export rows for the whole catalog.

    Raises:
        ExportError: When the catalog is empty or nothing has been enriched
    """
    if not catalog:
        raise ExportError("No products to export. Please upload and process products first.")
    if not any(product.get("enriched") for product in catalog):
        raise ExportError("No processed products to export. Please process products first.")

    return [export_row(product, include_tracking) for product in catalog]


def export_columns(rows: Iterable[Dict]) -> List[str]:
    """Columns in first-seen order with the tracking columns last."""
    columns = []
    for row in rows:
        for key in row:
            if key not in columns and key not in TRACKING_COLUMNS:
                columns.append(key)
    present = {key for row in rows for key in row}
    columns.extend(c for c in TRACKING_COLUMNS if c in present)
    return columns


def write_csv(rows: List[Dict], path: str, columns: Optional[List[str]] = None) -> str:
    """Write export rows to a CSV file and return the path."""
    rows = list(rows)
    columns = columns or export_columns(rows)

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, restval="", extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)

    logging.info(f"Wrote {len(rows)} rows to {path}")
    return path


def export_filename(include_tracking: bool = False, brand: str = "Thrivera", today: Optional[date] = None) -> str:
    """Timestamped export file name; tracking exports use a distinct prefix."""
    stamp = (today or date.today()).isoformat()
    prefix = brand.lower().replace(" ", "_")
    if include_tracking:
        return f"{prefix}_products_with_tracking_{stamp}.csv"
    return f"{prefix}_shopify_import_{stamp}.csv"
