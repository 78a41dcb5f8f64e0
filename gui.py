#!/usr/bin/env python3
"""
Thrivera Catalog Enricher - GUI Entry Point

Version 1.0.0
Graphical session for brand-voice catalog enrichment: load a Shopify CSV,
enrich it product by product (with a working Stop button), browse and filter
the results, and export an import-ready CSV.
"""

import os
import sys
import logging
import threading
import queue
from tkinter import filedialog, messagebox
import ttkbootstrap as tb
from ttkbootstrap.constants import *
from ttkbootstrap.tooltip import ToolTip

from catalog_enricher.config import (
    load_config,
    save_config,
    setup_logging,
    SCRIPT_VERSION
)
from catalog_enricher.catalog_io import CatalogError, ExportError
from catalog_enricher.session import CatalogSession


# AI Provider options
AI_PROVIDERS = [
    ("ChatGPT (OpenAI)", "openai"),
    ("Claude (Anthropic)", "claude")
]

PROCESSING_MODES = [
    ("Selective (skip already enriched)", "selective"),
    ("Exhaustive (reprocess everything)", "exhaustive")
]

STATUS_FILTERS = [
    ("All products", "all"),
    ("Enriched", "enriched"),
    ("Pending", "pending")
]

TABLE_LIMIT = 500


def display_for(options, value, default_index=0):
    """Convert an option ID to its display name."""
    for display, option_id in options:
        if option_id == value:
            return display
    return options[default_index][0]


def id_for(options, display_name, default_index=0):
    """Convert a display name to its option ID."""
    for display, option_id in options:
        if display == display_name:
            return option_id
    return options[default_index][1]


def open_api_settings(cfg, parent):
    """Open the API settings dialog."""
    settings_window = tb.Toplevel(parent)
    settings_window.title("API Settings")
    settings_window.geometry("700x420")
    settings_window.transient(parent)
    settings_window.grab_set()

    main_frame = tb.Frame(settings_window, padding=20)
    main_frame.pack(fill="both", expand=True)

    tb.Label(
        main_frame,
        text="API Settings",
        font=("Arial", 14, "bold")
    ).grid(row=0, column=0, columnspan=2, pady=(0, 20))

    tb.Label(main_frame, text="OpenAI API Key:").grid(row=1, column=0, sticky="w", padx=5, pady=5)
    openai_api_key_var = tb.StringVar(value=cfg.get("OPENAI_API_KEY", ""))
    openai_entry = tb.Entry(main_frame, textvariable=openai_api_key_var, width=50, show="*")
    openai_entry.grid(row=1, column=1, sticky="ew", padx=5, pady=5)
    ToolTip(openai_entry, text="Your OpenAI API key\n(Get one at: platform.openai.com)")

    tb.Label(main_frame, text="OpenAI Model:").grid(row=2, column=0, sticky="w", padx=5, pady=5)
    openai_model_var = tb.StringVar(value=cfg.get("OPENAI_MODEL", "gpt-4o-mini"))
    tb.Entry(main_frame, textvariable=openai_model_var, width=50).grid(row=2, column=1, sticky="ew", padx=5, pady=5)

    tb.Label(main_frame, text="Claude API Key:").grid(row=3, column=0, sticky="w", padx=5, pady=5)
    claude_api_key_var = tb.StringVar(value=cfg.get("CLAUDE_API_KEY", ""))
    claude_entry = tb.Entry(main_frame, textvariable=claude_api_key_var, width=50, show="*")
    claude_entry.grid(row=3, column=1, sticky="ew", padx=5, pady=5)
    ToolTip(claude_entry, text="Your Anthropic Claude API key\n(Get one at: console.anthropic.com)")

    tb.Label(main_frame, text="Claude Model:").grid(row=4, column=0, sticky="w", padx=5, pady=5)
    claude_model_var = tb.StringVar(value=cfg.get("CLAUDE_MODEL", "claude-sonnet-4-5-20250929"))
    tb.Entry(main_frame, textvariable=claude_model_var, width=50).grid(row=4, column=1, sticky="ew", padx=5, pady=5)

    tb.Label(
        main_frame,
        text="Without an API key every product gets the local template description.",
        font=("Arial", 9),
        foreground="#5BC0DE",
        justify="left"
    ).grid(row=5, column=0, columnspan=2, sticky="w", padx=5, pady=10)

    main_frame.columnconfigure(1, weight=1)

    button_frame = tb.Frame(settings_window)
    button_frame.pack(side="bottom", fill="x", padx=20, pady=20)

    def save_settings():
        """Save settings and close dialog."""
        cfg["OPENAI_API_KEY"] = openai_api_key_var.get().strip()
        cfg["OPENAI_MODEL"] = openai_model_var.get().strip() or "gpt-4o-mini"
        cfg["CLAUDE_API_KEY"] = claude_api_key_var.get().strip()
        cfg["CLAUDE_MODEL"] = claude_model_var.get().strip() or "claude-sonnet-4-5-20250929"
        save_config(cfg)
        messagebox.showinfo("Settings Saved", "API settings have been saved successfully.")
        settings_window.destroy()

    tb.Button(button_frame, text="Save", command=save_settings, bootstyle="success", width=15).pack(side="right", padx=5)
    tb.Button(button_frame, text="Cancel", command=settings_window.destroy, bootstyle="secondary", width=15).pack(side="right")


def process_products_worker(session, mode, status_queue, progress_queue, button_control_queue):
    """
    Worker thread function to run one enrichment batch.
    Uses queue-based communication for thread-safe GUI updates.

    Args:
        session: CatalogSession holding the catalog
        mode: Processing mode
        status_queue: Queue for status messages
        progress_queue: Queue for (current, total, label) progress tuples
        button_control_queue: Queue for button state control
    """
    def status(msg):
        """Thread-safe status update via queue."""
        status_queue.put(msg)

    def progress(event):
        progress_queue.put((event.run.current, event.run.total, event.run.current_label, event.event))

    try:
        result = session.run(mode, status_fn=status, progress_fn=progress)
        status("")
        status(result["message"])
    except Exception as e:
        logging.exception("Batch run failed:")
        status(f"❌ Error processing products: {e}")
    finally:
        progress_queue.put((0, 0, "", "reset"))
        button_control_queue.put("enable_buttons")


def build_gui():
    """Build the main GUI application."""
    cfg = load_config()
    setup_logging(cfg.get("LOG_FILE") or "catalog_enricher.log")

    session = CatalogSession(cfg)
    restored = session.restore()

    app = tb.Window(themename="flatly")
    app.title("Thrivera Catalog Enricher")
    app.geometry(cfg.get("WINDOW_GEOMETRY", "1000x760"))

    menu_bar = tb.Menu(app)
    app.config(menu=menu_bar)
    settings_menu = tb.Menu(menu_bar, tearoff=0)
    menu_bar.add_cascade(label="Settings", menu=settings_menu)
    settings_menu.add_command(label="API Settings", command=lambda: open_api_settings(cfg, app))

    container = tb.Frame(app)
    container.pack(fill="both", expand=True, padx=10, pady=10)
    container.columnconfigure(1, weight=1)

    tb.Label(container, text="Thrivera Catalog Enricher", font=("Arial", 14, "bold")).grid(
        row=0, column=0, columnspan=4, pady=10
    )

    row = 1

    # Provider and mode
    tb.Label(container, text="AI Provider:", anchor="w").grid(row=row, column=0, sticky="w", padx=5, pady=5)
    provider_var = tb.StringVar(value=display_for(AI_PROVIDERS, cfg.get("AI_PROVIDER", "openai")))
    tb.Combobox(
        container,
        textvariable=provider_var,
        values=[display for display, _ in AI_PROVIDERS],
        state="readonly",
        width=40
    ).grid(row=row, column=1, sticky="ew", padx=5, pady=5)

    def on_provider_change(*args):
        cfg["AI_PROVIDER"] = id_for(AI_PROVIDERS, provider_var.get())
        save_config(cfg)

    provider_var.trace_add("write", on_provider_change)

    row += 1
    tb.Label(container, text="Processing Mode:", anchor="w").grid(row=row, column=0, sticky="w", padx=5, pady=5)
    mode_var = tb.StringVar(value=display_for(PROCESSING_MODES, cfg.get("PROCESSING_MODE", "selective")))
    mode_combo = tb.Combobox(
        container,
        textvariable=mode_var,
        values=[display for display, _ in PROCESSING_MODES],
        state="readonly",
        width=40
    )
    mode_combo.grid(row=row, column=1, sticky="ew", padx=5, pady=5)
    ToolTip(mode_combo, text="Selective: skip products that already carry the brand voice or collection tags.\n"
                             "Exhaustive: reprocess every product.", bootstyle="info")

    def on_mode_change(*args):
        cfg["PROCESSING_MODE"] = id_for(PROCESSING_MODES, mode_var.get())
        save_config(cfg)

    mode_var.trace_add("write", on_mode_change)

    # Filter row
    row += 1
    filter_frame = tb.Frame(container)
    filter_frame.grid(row=row, column=0, columnspan=4, sticky="ew", padx=5, pady=5)

    tb.Label(filter_frame, text="Show:").pack(side="left")
    filter_var = tb.StringVar(value=STATUS_FILTERS[0][0])
    tb.Combobox(
        filter_frame,
        textvariable=filter_var,
        values=[display for display, _ in STATUS_FILTERS],
        state="readonly",
        width=16
    ).pack(side="left", padx=5)

    tb.Label(filter_frame, text="Search:").pack(side="left", padx=(15, 0))
    search_var = tb.StringVar()
    tb.Entry(filter_frame, textvariable=search_var, width=30).pack(side="left", padx=5)

    stats_var = tb.StringVar()
    tb.Label(filter_frame, textvariable=stats_var, font=("Arial", 9)).pack(side="right")

    # Product table
    row += 1
    table_frame = tb.Frame(container)
    table_frame.grid(row=row, column=0, columnspan=4, sticky="nsew", padx=5, pady=5)
    container.rowconfigure(row, weight=2)

    columns = ("title", "vendor", "collection", "status")
    table = tb.Treeview(table_frame, columns=columns, show="headings", height=10)
    for column, heading, width in (
        ("title", "Title", 380),
        ("vendor", "Vendor", 160),
        ("collection", "Collection", 180),
        ("status", "Status", 90),
    ):
        table.heading(column, text=heading)
        table.column(column, width=width, anchor="w")
    table.pack(side="left", fill="both", expand=True)
    table_scroll = tb.Scrollbar(table_frame, command=table.yview)
    table_scroll.pack(side="right", fill="y")
    table.config(yscrollcommand=table_scroll.set)

    def refresh_table(*args):
        """Re-render the product table from the session."""
        table.delete(*table.get_children())
        products = session.filter_products(id_for(STATUS_FILTERS, filter_var.get()), search_var.get())
        for product in products[:TABLE_LIMIT]:
            table.insert("", "end", values=(
                product.get("Title", ""),
                product.get("Vendor", ""),
                product.get("detected_collection", ""),
                "Enriched" if product.get("enriched") else "Pending"
            ))
        stats = session.stats()
        shown = f"showing {min(len(products), TABLE_LIMIT)} of {len(products)}"
        stats_var.set(f"{stats['total']} products · {stats['enriched']} enriched · {stats['pending']} pending ({shown})")

    filter_var.trace_add("write", refresh_table)
    search_var.trace_add("write", refresh_table)

    # Progress
    row += 1
    progress_var = tb.StringVar(value="Idle")
    tb.Label(container, textvariable=progress_var, anchor="w").grid(row=row, column=0, columnspan=2, sticky="w", padx=5)
    progress_bar = tb.Progressbar(container, mode="determinate", bootstyle="success-striped")
    progress_bar.grid(row=row, column=2, columnspan=2, sticky="ew", padx=5)

    # Status log
    row += 1
    tb.Label(container, text="Status Log:", anchor="w", font=("Arial", 10, "bold")).grid(
        row=row, column=0, columnspan=4, sticky="w", padx=5, pady=(10, 5)
    )

    row += 1
    status_frame = tb.Frame(container)
    status_frame.grid(row=row, column=0, columnspan=4, sticky="nsew", padx=5, pady=5)
    container.rowconfigure(row, weight=1)

    status_text = tb.Text(status_frame, height=10, wrap="word", state="disabled")
    status_text.pack(side="left", fill="both", expand=True)
    scrollbar = tb.Scrollbar(status_frame, command=status_text.yview)
    scrollbar.pack(side="right", fill="y")
    status_text.config(yscrollcommand=scrollbar.set)

    # Create queues for thread-safe GUI updates
    status_queue = queue.Queue()
    progress_queue = queue.Queue()
    button_control_queue = queue.Queue()

    def process_queues():
        """Process all pending messages from queues. Runs in main thread."""
        try:
            messages = []
            while True:
                try:
                    messages.append(status_queue.get_nowait())
                except queue.Empty:
                    break

            if messages:
                status_text.config(state="normal")
                for msg in messages:
                    status_text.insert("end", msg + "\n")
                status_text.see("end")
                status_text.config(state="disabled")

            refresh = False
            while True:
                try:
                    current, total, label, event = progress_queue.get_nowait()
                except queue.Empty:
                    break
                if event == "reset":
                    progress_var.set("Idle")
                    progress_bar.config(value=0)
                    refresh = True
                    continue
                if total:
                    progress_bar.config(maximum=total, value=current)
                    progress_var.set(f"{current}/{total}: {label[:60]}")
                if event in ("item_completed", "item_failed", "finished"):
                    refresh = True
            if refresh:
                refresh_table()

            while True:
                try:
                    signal = button_control_queue.get_nowait()
                except queue.Empty:
                    break
                if signal == "enable_buttons":
                    set_idle_buttons(True)

        except Exception as e:
            logging.error(f"Error processing queues: {e}", exc_info=True)

        # Schedule next check (50ms = 20 times per second)
        app.after(50, process_queues)

    def status(msg):
        status_queue.put(msg)

    # Control buttons
    row += 1
    button_frame = tb.Frame(container)
    button_frame.grid(row=row, column=0, columnspan=4, pady=10)

    processing_thread = None

    def load_csv():
        path = filedialog.askopenfilename(filetypes=[("CSV files", "*.csv"), ("All files", "*.*")])
        if not path:
            return
        try:
            count = session.load_file(path)
        except CatalogError as e:
            messagebox.showerror("Load Error", str(e))
            return
        cfg["INPUT_FILE"] = path
        save_config(cfg)
        status(f"Loaded {count} products from {os.path.basename(path)}")
        refresh_table()

    def start_processing():
        nonlocal processing_thread

        if processing_thread and processing_thread.is_alive():
            messagebox.showwarning("Already Running", "Processing is already in progress.")
            return
        if not session.products:
            messagebox.showwarning("No Products", "Please upload a CSV file first.")
            return

        set_idle_buttons(False)
        processing_thread = threading.Thread(
            target=process_products_worker,
            args=(session, id_for(PROCESSING_MODES, mode_var.get()), status_queue, progress_queue, button_control_queue),
            daemon=True
        )
        processing_thread.start()

    def stop_processing():
        """Stop after the product currently being enriched."""
        if processing_thread and processing_thread.is_alive():
            session.cancel()
            status("⏹  Stopping after the current product...")

    def export(include_tracking):
        output_dir = filedialog.askdirectory(initialdir=cfg.get("OUTPUT_DIR") or os.getcwd())
        if not output_dir:
            return
        try:
            path = session.export(output_dir, include_tracking=include_tracking)
        except ExportError as e:
            messagebox.showwarning("Nothing to Export", str(e))
            return
        cfg["OUTPUT_DIR"] = output_dir
        save_config(cfg)
        status(f"✓ Exported {path}")

    def clear_catalog():
        if not messagebox.askyesno("Clear Catalog", "Remove all products from this session?"):
            return
        session.clear()
        status("Catalog cleared")
        refresh_table()

    load_btn = tb.Button(button_frame, text="Load CSV", command=load_csv, bootstyle="primary", width=14)
    start_btn = tb.Button(button_frame, text="Start Processing", command=start_processing, bootstyle="success", width=18)
    stop_btn = tb.Button(button_frame, text="Stop", command=stop_processing, bootstyle="danger", width=10)
    export_btn = tb.Button(button_frame, text="Export for Shopify", command=lambda: export(False), bootstyle="info", width=18)
    tracking_btn = tb.Button(button_frame, text="Export with Tracking", command=lambda: export(True), bootstyle="info-outline", width=20)
    clear_btn = tb.Button(button_frame, text="Clear", command=clear_catalog, bootstyle="secondary", width=10)

    for button in (load_btn, start_btn, stop_btn, export_btn, tracking_btn, clear_btn):
        button.pack(side="left", padx=5)

    def set_idle_buttons(idle):
        state = "normal" if idle else "disabled"
        for button in (load_btn, start_btn, export_btn, tracking_btn, clear_btn):
            button.config(state=state)

    def on_close():
        if processing_thread and processing_thread.is_alive():
            session.cancel()
        cfg["WINDOW_GEOMETRY"] = app.geometry()
        save_config(cfg)
        app.destroy()

    app.protocol("WM_DELETE_WINDOW", on_close)

    # Start queue processor (REQUIRED for thread-safe GUI updates)
    app.after(50, process_queues)

    status("=" * 80)
    status(f"Thrivera Catalog Enricher {SCRIPT_VERSION}")
    status("=" * 80)
    if restored:
        status(f"Restored {restored} products from the previous session")
    else:
        status("Load a Shopify product CSV to begin.")
    refresh_table()

    app.mainloop()


def main():
    """Main entry point for the application."""
    try:
        print(f"Starting {SCRIPT_VERSION}")
        build_gui()
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logging.exception("Fatal error in main:")
        sys.exit(1)


if __name__ == "__main__":
    main()
