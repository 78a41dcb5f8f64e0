"""
Pytest configuration and shared fixtures for Catalog Enricher tests.
"""

import pytest
import json
import tempfile
import csv
from pathlib import Path


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

@pytest.fixture
def sample_rows():
    """Shopify export rows as read from a CSV file."""
    return [
        {
            "Handle": "yoga-mat",
            "Title": "Yoga Mat",
            "Body (HTML)": "<p>Great mat</p>",
            "Vendor": "FlexCo",
            "Type": "Fitness",
            "Tags": "",
            "Variant Price": "39.99",
            "Variant Barcode": "",
        },
        {
            "Handle": "lavender-oil",
            "Title": "Lavender Essential Oil",
            "Body (HTML)": "<p>Pure lavender oil for a calm mind. 30 ml bottle.</p>",
            "Vendor": "Aroma House",
            "Type": "Aromatherapy",
            "Tags": "oils",
            "Variant Price": "18.50",
            "Variant Barcode": "012345678905",
        },
        {
            "Handle": "memory-pillow",
            "Title": "Memory Foam Pillow",
            "Body (HTML)": "<p>Contoured pillow for side sleepers.</p>",
            "Vendor": "DreamWorks Bedding Company",
            "Type": "Bedding",
            "Tags": "bedroom",
            "Variant Price": "64.00",
            "Variant Barcode": "",
        },
    ]


@pytest.fixture
def sample_catalog(sample_rows):
    """Loaded catalog built from sample_rows."""
    from catalog_enricher.catalog_io import load_catalog
    return load_catalog(sample_rows)


@pytest.fixture
def failing_generate_fn():
    """Remote generator that always fails the way an unconfigured provider does."""
    from catalog_enricher.ai_provider import GenerationError

    def generate(prompt, cfg):
        raise GenerationError("API key not configured")

    return generate


# ============================================================================
# TEMPORARY FILE FIXTURES
# ============================================================================

@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config.json file."""
    config_path = temp_dir / "config.json"
    config_data = {
        "AI_PROVIDER": "claude",
        "CLAUDE_API_KEY": "test_claude_key_12345",
        "CLAUDE_MODEL": "claude-sonnet-4-5-20250929",
        "OPENAI_API_KEY": "test_openai_key_67890",
        "OPENAI_MODEL": "gpt-4o-mini",
        "INPUT_FILE": str(temp_dir / "input.csv"),
        "LOG_FILE": str(temp_dir / "test.log"),
        "WINDOW_GEOMETRY": "800x800"
    }
    with open(config_path, 'w') as f:
        json.dump(config_data, f, indent=4)
    return config_path


@pytest.fixture
def temp_csv_file(temp_dir, sample_rows):
    """Write sample_rows to a Shopify-style CSV file."""
    csv_path = temp_dir / "products.csv"
    with open(csv_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=list(sample_rows[0].keys()))
        writer.writeheader()
        writer.writerows(sample_rows)
    return csv_path


@pytest.fixture
def offline_config(temp_dir):
    """Configuration with no credentials and no pacing."""
    return {
        "AI_PROVIDER": "openai",
        "OPENAI_API_KEY": "",
        "CLAUDE_API_KEY": "",
        "ITEM_DELAY_SECONDS": 0,
        "PROCESSING_MODE": "selective",
        "CLASSIFIER_STRATEGY": "first_match",
        "ENABLE_IDENTIFIER_LOOKUP": False,
        "SESSION_FILE": str(temp_dir / "session.json"),
        "OUTPUT_DIR": str(temp_dir / "out"),
    }


@pytest.fixture(autouse=True)
def no_env_api_keys(monkeypatch):
    """Keep real credentials in the environment out of the tests."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)


# ============================================================================
# MOCK API FIXTURES
# ============================================================================

@pytest.fixture
def mock_claude_response():
    """Mock Claude API response."""
    class MockResponse:
        def __init__(self):
            self.id = "msg_test123"
            self.model = "claude-sonnet-4-5-20250929"
            self.content = [
                type('obj', (object,), {
                    'text': "Discover a yoga mat that helps you move."
                })
            ]
            self.usage = type('obj', (object,), {
                'input_tokens': 500,
                'output_tokens': 200
            })
            self.stop_reason = 'end_turn'

    return MockResponse()


@pytest.fixture
def mock_openai_response():
    """Mock OpenAI API response."""
    class MockResponse:
        def __init__(self):
            self.id = "chatcmpl-test123"
            self.model = "gpt-4o-mini"
            self.choices = [
                type('obj', (object,), {
                    'message': type('obj', (object,), {
                        'content': "Discover a yoga mat that helps you move."
                    }),
                    'finish_reason': 'stop'
                })
            ]
            self.usage = type('obj', (object,), {
                'prompt_tokens': 500,
                'completion_tokens': 200,
                'total_tokens': 700
            })

    return MockResponse()


# ============================================================================
# UTILITY FIXTURES
# ============================================================================

@pytest.fixture
def mock_status_fn():
    """Mock status function that collects status messages."""
    messages = []

    def status_fn(msg):
        messages.append(msg)

    status_fn.messages = messages
    return status_fn
