"""
Catalog Enricher Package

This package contains the core functionality for the Thrivera Catalog Enricher.

Modules:
- brand_profile: Collection tables, voice rules and taxonomy entries
- classifier: Keyword-based collection detection
- ai_provider: Routes description generation to Claude or OpenAI
- voice: Brand-voice description generation with local fallback
- metadata: SEO and Google Shopping field derivation
- enrichment: Builds one enriched product record
- batch: Incremental, cancellable batch processing
- catalog_io: Shopify CSV loading and export
- session: Catalog store and session operations
"""

__version__ = "1.0.0"

__all__ = [
    "ai_provider",
    "batch",
    "brand_profile",
    "catalog_io",
    "classifier",
    "enrichment",
    "metadata",
    "session",
    "voice",
]
