"""
Tests for catalog_enricher/identifier_lookup.py

Tests barcode lookup with mocked HTTP calls.
"""

from unittest.mock import Mock, patch

import requests

from catalog_enricher.identifier_lookup import (
    DEFAULT_UPCITEMDB_URL,
    lookup_identifier,
    search_upcitemdb,
)


def make_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestSearchUpcitemdb:
    """Tests for search_upcitemdb()."""

    def test_returns_first_ean(self):
        payload = {"items": [{"ean": "0012345678905", "upc": "012345678905"}, {"ean": "999"}]}

        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=make_response(payload)) as mock_get:
            result = search_upcitemdb("FlexCo Yoga Mat")

        assert result == "0012345678905"
        args, kwargs = mock_get.call_args
        assert args[0] == DEFAULT_UPCITEMDB_URL
        assert kwargs["params"]["s"] == "FlexCo Yoga Mat"

    def test_falls_back_to_upc(self):
        payload = {"items": [{"upc": "012345678905"}]}
        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=make_response(payload)):
            assert search_upcitemdb("mat") == "012345678905"

    def test_no_items(self):
        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=make_response({"items": []})):
            assert search_upcitemdb("mat") is None

    def test_unexpected_payload(self):
        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=make_response(["not", "a", "dict"])):
            assert search_upcitemdb("mat") is None

    def test_network_error(self, caplog):
        with patch("catalog_enricher.identifier_lookup.requests.get",
                   side_effect=requests.exceptions.ConnectionError("down")):
            assert search_upcitemdb("mat") is None
        assert "Network error" in caplog.text

    def test_http_error(self):
        response = make_response({})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("429")
        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=response):
            assert search_upcitemdb("mat") is None

    def test_malformed_json(self):
        response = make_response(None)
        response.json.side_effect = ValueError("no json")
        with patch("catalog_enricher.identifier_lookup.requests.get", return_value=response):
            assert search_upcitemdb("mat") is None


class TestLookupIdentifier:
    """Tests for lookup_identifier()."""

    def test_existing_barcode_wins(self):
        with patch("catalog_enricher.identifier_lookup.search_upcitemdb") as mock_search:
            result = lookup_identifier({"Variant Barcode": "012345678905"}, {"ENABLE_IDENTIFIER_LOOKUP": True})

        assert result == "012345678905"
        mock_search.assert_not_called()

    def test_disabled_lookup(self):
        with patch("catalog_enricher.identifier_lookup.search_upcitemdb") as mock_search:
            assert lookup_identifier({"Title": "Yoga Mat"}, {}) is None
        mock_search.assert_not_called()

    def test_untitled_product(self):
        with patch("catalog_enricher.identifier_lookup.search_upcitemdb") as mock_search:
            assert lookup_identifier({"Vendor": "FlexCo"}, {"ENABLE_IDENTIFIER_LOOKUP": True}) is None
        mock_search.assert_not_called()

    def test_searches_vendor_and_title(self):
        cfg = {"ENABLE_IDENTIFIER_LOOKUP": True, "UPCITEMDB_URL": "http://example.test/search", "REQUEST_TIMEOUT": 5}

        with patch("catalog_enricher.identifier_lookup.search_upcitemdb", return_value="12345678") as mock_search:
            result = lookup_identifier({"Title": "Yoga Mat", "Vendor": "FlexCo"}, cfg)

        assert result == "12345678"
        mock_search.assert_called_once_with("FlexCo Yoga Mat", "http://example.test/search", timeout=5.0)
