"""
Catalog store and session operations.

CatalogSession holds the current catalog for one operator, persists it to a
JSON file between sessions and exposes the operations the CLI and GUI call:
load, restore, clear, filter, run, cancel and export.
"""

import json
import logging
import os
import threading
from datetime import date
from typing import Dict, List, Optional

from .batch import BatchProcessor
from .brand_profile import BrandProfile, profile_from_config
from .catalog_io import export_filename, export_rows, load_catalog, read_csv_rows, write_csv
from .config import log_and_status
from .identifier_lookup import lookup_identifier
from .product_utils import cell

SESSION_VERSION = "1.0"

SEARCH_FIELDS = ("Title", "Handle", "Vendor", "detected_collection")


class CatalogSession:
    """Single-operator catalog store with persistence."""

    def __init__(self, cfg: Optional[Dict] = None, state_path: Optional[str] = None,
                 profile: Optional[BrandProfile] = None, processor: Optional[BatchProcessor] = None):
        self.cfg = cfg or {}
        self.state_path = state_path or self.cfg.get("SESSION_FILE") or os.path.join("cache", "catalog_session.json")
        self.profile = profile or profile_from_config(self.cfg)
        self.processor = processor or BatchProcessor(self.cfg, self.profile)
        self.products: List[Dict] = []
        self.source_file = ""
        self._cancel_event: Optional[threading.Event] = None

    # ---- persistence ---------------------------------------------------

    def save(self):
        """Persist the catalog. Failures are logged, the session keeps running."""
        state = {
            "session_version": SESSION_VERSION,
            "profile_version": self.profile.version,
            "source_file": self.source_file,
            "products": self.products,
        }
        try:
            directory = os.path.dirname(self.state_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.state_path, "w", encoding="utf-8") as f:
                json.dump(state, f, indent=2, ensure_ascii=False)
        except (IOError, TypeError) as e:
            logging.error(f"Failed to save session state: {e}")

    def restore(self) -> int:
        """Reload the last saved catalog. Returns the number of products restored."""
        if not os.path.exists(self.state_path):
            return 0
        try:
            with open(self.state_path, "r", encoding="utf-8") as f:
                state = json.load(f)
        except (IOError, json.JSONDecodeError) as e:
            logging.warning(f"Failed to restore session state: {e}")
            return 0

        products = state.get("products") if isinstance(state, dict) else None
        if not isinstance(products, list):
            logging.warning("Session state has no product list, ignoring it")
            return 0

        self.products = products
        self.source_file = state.get("source_file", "")
        logging.info(f"Restored {len(products)} products from {self.state_path}")
        return len(products)

    def clear(self):
        """Drop the catalog and its saved state."""
        self.products = []
        self.source_file = ""
        if os.path.exists(self.state_path):
            try:
                os.remove(self.state_path)
            except OSError as e:
                logging.error(f"Failed to remove session state: {e}")

    # ---- catalog -------------------------------------------------------

    def load_file(self, path: str) -> int:
        """
        Replace the catalog with the contents of a CSV file.

        Raises:
            CatalogError: The file cannot become a catalog (the current
                catalog is left unchanged)
        """
        catalog = load_catalog(read_csv_rows(path))
        self.products = catalog
        self.source_file = path
        self.save()
        return len(catalog)

    def stats(self) -> Dict[str, int]:
        enriched = sum(1 for p in self.products if p.get("enriched"))
        return {
            "total": len(self.products),
            "enriched": enriched,
            "pending": len(self.products) - enriched,
        }

    def filter_products(self, status: str = "all", search: str = "") -> List[Dict]:
        """
        Filter by enrichment status ("all", "enriched", "pending") and free text.
        """
        products = self.products
        if status == "enriched":
            products = [p for p in products if p.get("enriched")]
        elif status == "pending":
            products = [p for p in products if not p.get("enriched")]

        term = (search or "").strip().lower()
        if term:
            products = [
                p for p in products
                if any(term in cell(p, name).lower() for name in SEARCH_FIELDS)
            ]
        return products

    # ---- processing ----------------------------------------------------

    def run(self, mode: Optional[str] = None, status_fn=None, progress_fn=None) -> Dict:
        """
        Run the batch processor and commit every published snapshot.

        progress_fn, when given, receives every BatchProgress after it has
        been committed.

        Returns:
            {"status": ..., "message": ..., "enriched": n, "failed": n}
        """
        mode = mode or self.cfg.get("PROCESSING_MODE", "selective")
        if not self.products:
            message = "No products loaded. Please upload a CSV file first."
            log_and_status(status_fn, f"❌ {message}", "error")
            return {"status": "no_catalog", "message": message, "enriched": 0, "failed": 0}

        # Token exists before the first step so an early Stop is not lost
        self._cancel_event = threading.Event()
        final = None
        try:
            progress_events = self.processor.run(self.products, mode, self._cancel_event)
            for progress in progress_events:
                self._commit(progress, status_fn, progress_fn)
                if progress.finished:
                    final = progress
        finally:
            self._cancel_event = None

        self.save()
        logging.info(f"Run finished with status: {final.status}")
        return {
            "status": final.status,
            "message": final.message,
            "enriched": final.run.enriched_count,
            "failed": final.run.failed_count,
        }

    def _commit(self, progress, status_fn=None, progress_fn=None):
        """Adopt a published snapshot, persist it and report it."""
        self.products = progress.catalog
        if progress.event in ("item_completed", "item_failed"):
            self.save()

        level = "error" if progress.event == "item_failed" else "info"
        ui_msg = None
        if progress.event == "item_started":
            ui_msg = f"Enriching: {progress.run.current}/{progress.run.total}"
        if progress.message:
            log_and_status(status_fn, progress.message, level, ui_msg=ui_msg)

        if progress_fn is not None:
            progress_fn(progress)

    def cancel(self):
        """Stop the active run after the product in flight."""
        event = self._cancel_event
        if event is not None:
            event.set()
        self.processor.cancel()

    # ---- identifiers & export -----------------------------------------

    def fill_missing_identifiers(self, status_fn=None) -> int:
        """Write looked-up GTINs into 'Variant Barcode' for rows without one."""
        found = 0
        updated = []
        for product in self.products:
            if cell(product, "Variant Barcode"):
                updated.append(product)
                continue
            identifier = lookup_identifier(product, self.cfg)
            if identifier:
                product = dict(product)
                product["Variant Barcode"] = identifier
                found += 1
            updated.append(product)
        self.products = updated
        self.save()
        log_and_status(status_fn, f"Identifier lookup filled {found} barcodes")
        return found

    def export(self, output_dir: str = "", include_tracking: bool = False, today: Optional[date] = None) -> str:
        """
        Write the export CSV and return its path.

        Raises:
            ExportError: When nothing has been enriched
        """
        rows = export_rows(self.products, include_tracking)
        filename = export_filename(include_tracking, self.profile.brand, today)
        path = os.path.join(output_dir or self.cfg.get("OUTPUT_DIR", "") or ".", filename)
        return write_csv(rows, path)
