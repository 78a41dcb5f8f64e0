#!/usr/bin/env python3
"""
Thrivera Catalog Enricher - CLI Entry Point

Command-line interface for brand-voice catalog enrichment.
Loads a Shopify product CSV, classifies each product into a wellness
collection, rewrites descriptions, derives SEO and Google Shopping fields,
and writes an import-ready CSV.
"""

import argparse
import signal
import sys
import os

# Add current directory to path for imports
sys.path.insert(0, os.path.dirname(__file__))

from catalog_enricher.config import (
    load_config,
    setup_logging,
    SCRIPT_VERSION
)
from catalog_enricher.catalog_io import CatalogError, ExportError
from catalog_enricher.session import CatalogSession


def print_status(message):
    """Print status message to stdout."""
    print(f"[STATUS] {message}")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Thrivera Catalog Enricher - brand-voice enrichment for Shopify CSV exports",
        epilog=f"Version {SCRIPT_VERSION}"
    )
    parser.add_argument(
        "--input",
        help="Path to Shopify product CSV (omit with --resume to continue the saved session)"
    )
    parser.add_argument(
        "--output-dir",
        help="Directory for the exported CSV (default: current directory)"
    )
    parser.add_argument(
        "--mode",
        choices=["selective", "exhaustive", "smart", "force"],
        help="selective skips already-enriched products, exhaustive reprocesses all (default: from config)"
    )
    parser.add_argument(
        "--tracking",
        action="store_true",
        help="Add enrichment status, collection and date columns to the export"
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Continue from the saved session instead of loading a new file"
    )
    parser.add_argument(
        "--provider",
        choices=["claude", "openai"],
        help="AI provider to use (default: from config)"
    )
    parser.add_argument(
        "--openai-model",
        help="OpenAI model ID"
    )
    parser.add_argument(
        "--claude-model",
        help="Claude model ID"
    )
    parser.add_argument(
        "--openai-api-key",
        help="OpenAI API key (or set OPENAI_API_KEY env var)"
    )
    parser.add_argument(
        "--claude-api-key",
        help="Claude API key (or set CLAUDE_API_KEY env var)"
    )
    parser.add_argument(
        "--classifier",
        choices=["first_match", "scoring"],
        help="Collection detection strategy (default: from config)"
    )
    parser.add_argument(
        "--delay",
        type=float,
        help="Seconds to wait between products"
    )
    parser.add_argument(
        "--lookup-identifiers",
        action="store_true",
        help="Look up missing barcodes before exporting"
    )
    parser.add_argument(
        "--log-file",
        help="Path to log file"
    )
    return parser


def apply_overrides(config, args):
    """Override config with CLI arguments."""
    if args.provider:
        config["AI_PROVIDER"] = args.provider
    if args.openai_model:
        config["OPENAI_MODEL"] = args.openai_model
    if args.claude_model:
        config["CLAUDE_MODEL"] = args.claude_model
    if args.openai_api_key:
        config["OPENAI_API_KEY"] = args.openai_api_key
    if args.claude_api_key:
        config["CLAUDE_API_KEY"] = args.claude_api_key
    if args.classifier:
        config["CLASSIFIER_STRATEGY"] = args.classifier
    if args.delay is not None:
        config["ITEM_DELAY_SECONDS"] = args.delay
    if args.mode:
        config["PROCESSING_MODE"] = args.mode
    if args.output_dir:
        config["OUTPUT_DIR"] = args.output_dir
    if args.lookup_identifiers:
        config["ENABLE_IDENTIFIER_LOOKUP"] = True
    return config


def main(argv=None):
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    if not args.input and not args.resume:
        print("ERROR: Provide --input or --resume")
        return 1

    config = apply_overrides(load_config(), args)

    log_file = args.log_file or config.get("LOG_FILE") or "catalog_enricher.log"
    setup_logging(log_file)

    session = CatalogSession(config)

    if args.input:
        print_status(f"Loading products from {args.input}")
        try:
            count = session.load_file(args.input)
        except CatalogError as e:
            print(f"ERROR: {e}")
            return 1
        print_status(f"Loaded {count} products")
    else:
        count = session.restore()
        if not count:
            print("ERROR: No saved session to resume")
            return 1
        print_status(f"Restored {count} products from saved session")

    # Ctrl+C stops after the current product instead of killing the run
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: session.cancel())
    try:
        result = session.run(status_fn=print_status)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print_status(result["message"])

    if config.get("ENABLE_IDENTIFIER_LOOKUP"):
        session.fill_missing_identifiers(status_fn=print_status)

    try:
        path = session.export(config.get("OUTPUT_DIR", ""), include_tracking=args.tracking)
    except ExportError as e:
        print(f"ERROR: {e}")
        return 1

    print_status(f"✓ Exported {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
