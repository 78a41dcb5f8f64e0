"""
Incremental batch enrichment.

BatchProcessor walks the selected products one at a time and publishes a full
catalog snapshot after every item, so partial progress is visible (and can be
persisted) before the next remote call starts.

State machine:

    IDLE -> SELECTING -> RUNNING -> (CANCELLING) -> IDLE

The run ends as "completed", "cancelled" or "nothing_to_do". Cancellation is
cooperative: a threading.Event checked before each item and again before the
pause between items. An item in flight always finishes.
"""

import logging
import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .brand_profile import DEFAULT_PROFILE, BrandProfile
from .enrichment import enrich_product
from .product_utils import cell, product_key, product_label

SELECTIVE = "selective"
EXHAUSTIVE = "exhaustive"

MODE_ALIASES = {
    "selective": SELECTIVE,
    "smart": SELECTIVE,
    "exhaustive": EXHAUSTIVE,
    "force": EXHAUSTIVE,
}

COMPLETED = "completed"
CANCELLED = "cancelled"
NOTHING_TO_DO = "nothing_to_do"


class RunState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    RUNNING = "running"
    CANCELLING = "cancelling"


@dataclass
class BatchRun:
    """Counters for one run. Discarded when the run ends."""

    total: int = 0
    current: int = 0
    current_label: str = ""
    already_enriched: int = 0
    enriched_count: int = 0
    failed_count: int = 0


@dataclass
class BatchProgress:
    """One event published by BatchProcessor.run."""

    event: str
    run: BatchRun
    catalog: List[Dict] = field(default_factory=list)
    message: str = ""
    status: Optional[str] = None

    @property
    def finished(self) -> bool:
        return self.status is not None


def normalize_mode(mode: str) -> str:
    try:
        return MODE_ALIASES[(mode or "").lower()]
    except KeyError:
        raise ValueError(f"Unknown processing mode: {mode}. Must be 'selective' or 'exhaustive'.")


def current_description(product: Dict, profile: BrandProfile = DEFAULT_PROFILE) -> str:
    if product.get("enriched") and product.get("new_description"):
        return str(product["new_description"])
    for column in profile.description_columns:
        value = cell(product, column)
        if value:
            return value
    return ""


def current_tags(product: Dict) -> str:
    if product.get("enriched") and product.get("new_tags"):
        return str(product["new_tags"])
    return cell(product, "Tags")


def is_already_enriched(product: Dict, profile: BrandProfile = DEFAULT_PROFILE) -> bool:
    """
    Sniff test for products that already carry the brand voice or tags.

    Both checks are case-insensitive substring matches.
    """
    description = current_description(product, profile).lower()
    tags = current_tags(product).lower()

    has_voice = any(marker.lower() in description for marker in profile.voice_markers)
    has_tags = any(tag in tags for tag in profile.tag_tokens())
    return has_voice or has_tags


def record_key(product: Dict, position: int) -> str:
    return product.get("id") or product_key(product, position)


def select_products(
    catalog: List[Dict],
    mode: str,
    profile: BrandProfile = DEFAULT_PROFILE
) -> List[Tuple[int, str, Dict]]:
    """
    Choose the work subset, preserving catalog order.

    Returns:
        (catalog position, identity key, product) triples. Keys may repeat
        for rows that never went through load_catalog; the position does not.
    """
    mode = normalize_mode(mode)
    subset = []
    for position, product in enumerate(catalog):
        if mode == SELECTIVE and is_already_enriched(product, profile):
            continue
        subset.append((position, record_key(product, position), product))
    return subset


class BatchProcessor:
    """
    Drives enrich_product over a catalog with progress, pacing and cancellation.

    Only one run may be active per processor.
    """

    def __init__(
        self,
        cfg: Optional[Dict] = None,
        profile: BrandProfile = DEFAULT_PROFILE,
        enrich_fn: Callable = None,
        sleep_fn: Callable[[float], None] = time.sleep,
        delay: Optional[float] = None
    ):
        self.cfg = cfg or {}
        self.profile = profile
        self.enrich_fn = enrich_fn or enrich_product
        self.sleep_fn = sleep_fn
        self.delay = float(self.cfg.get("ITEM_DELAY_SECONDS", 1.0)) if delay is None else delay

        self.state = RunState.IDLE
        self.run_state = BatchRun()
        self._cancel_event: Optional[threading.Event] = None
        # Reentrant: a cancel() may run the generator's cleanup on its own thread
        self._lock = threading.RLock()

    @property
    def is_running(self) -> bool:
        return self.state != RunState.IDLE

    def cancel(self):
        """Request cancellation of the active run (no-op when idle)."""
        with self._lock:
            event = self._cancel_event
            if event is None:
                logging.debug("Cancel requested with no active run")
                return
            event.set()
            # The run may have ended while the token was being set
            if self._cancel_event is event and self.state != RunState.IDLE:
                self.state = RunState.CANCELLING
        logging.info("Cancellation requested - stopping after the current product")

    def _progress(self, event: str, catalog: List[Dict], message: str = "", status: str = None) -> BatchProgress:
        return BatchProgress(
            event=event,
            run=replace(self.run_state),
            catalog=list(catalog),
            message=message,
            status=status
        )

    def _cancelled(self, cancel_event: threading.Event) -> bool:
        if cancel_event.is_set():
            self.state = RunState.CANCELLING
            return True
        return False

    def run(
        self,
        catalog: List[Dict],
        mode: str = SELECTIVE,
        cancel_event: Optional[threading.Event] = None
    ) -> Iterator[BatchProgress]:
        """
        Enrich the selected products, yielding progress after every step.

        Args:
            catalog: Full product list (not modified; snapshots are new lists)
            mode: "selective" skips pre-enriched products, "exhaustive" takes all
            cancel_event: Cancellation token; a fresh one is created if omitted

        Yields:
            BatchProgress events; the last one has a status of "completed",
            "cancelled" or "nothing_to_do" and carries the final catalog

        Raises:
            RuntimeError: If this processor already has an active run
            ValueError: For an unknown mode
        """
        with self._lock:
            if self.is_running:
                raise RuntimeError("A batch run is already in progress")
            self.state = RunState.SELECTING
            self._cancel_event = cancel_event or threading.Event()
            cancel_event = self._cancel_event

        try:
            subset = select_products(catalog, mode, self.profile)
            working = list(catalog)

            self.run_state = BatchRun(
                total=len(subset),
                already_enriched=len(working) - len(subset)
            )

            if not subset:
                message = "All products are already enriched! Use exhaustive mode to reprocess everything."
                logging.info(message)
                yield self._progress("finished", working, message, NOTHING_TO_DO)
                return

            self.state = RunState.RUNNING
            logging.info("=" * 80)
            logging.info(f"STARTING BATCH ENRICHMENT ({normalize_mode(mode)} mode)")
            logging.info(f"Products to process: {len(subset)} of {len(working)}")
            logging.info("=" * 80)
            yield self._progress("started", working, f"Processing {len(subset)} of {len(working)} products")

            cancelled = False
            for i, (position, key, product) in enumerate(subset):
                if self._cancelled(cancel_event):
                    cancelled = True
                    break

                label = product_label(product, i)
                self.run_state.current = i + 1
                self.run_state.current_label = label
                yield self._progress("item_started", working, f"Processing product {i + 1}/{len(subset)}: {label[:60]}")

                try:
                    enriched = self.enrich_fn(product, i, self.cfg, self.profile)
                except Exception as e:
                    self.run_state.failed_count += 1
                    logging.error(f"Error processing product '{label}': {e}", exc_info=True)
                    yield self._progress("item_failed", working, f"❌ Failed: {label[:60]} ({e})")
                else:
                    working[position] = enriched
                    self.run_state.enriched_count += 1
                    collection = enriched.get("detected_collection", "")
                    logging.debug(f"Committed {key} at row {position}")
                    yield self._progress("item_completed", working, f"✅ {label[:60]} → {collection}")

                # Throttle outbound requests between products
                if i < len(subset) - 1:
                    if self._cancelled(cancel_event):
                        cancelled = True
                        break
                    self.sleep_fn(self.delay)

            summary = (
                f"{self.run_state.enriched_count} enriched, "
                f"{self.run_state.failed_count} failed, "
                f"{self.run_state.already_enriched} already enriched"
            )
            if cancelled:
                message = f"Processing was cancelled by user. {summary}"
                logging.info(message)
                yield self._progress("finished", working, message, CANCELLED)
            else:
                message = f"Processing completed: {summary}"
                logging.info(message)
                yield self._progress("finished", working, message, COMPLETED)
        finally:
            with self._lock:
                self.run_state = BatchRun()
                self._cancel_event = None
                self.state = RunState.IDLE


def run_batch(
    catalog: List[Dict],
    mode: str = SELECTIVE,
    cfg: Optional[Dict] = None,
    profile: BrandProfile = DEFAULT_PROFILE,
    cancel_event: Optional[threading.Event] = None,
    **kwargs
) -> Iterator[BatchProgress]:
    """Convenience wrapper: one-off processor for a single run."""
    processor = BatchProcessor(cfg, profile, **kwargs)
    return processor.run(catalog, mode, cancel_event)
