"""
Tests for the Serper search client.

The HTTP session is a MagicMock; no network calls are made.
"""

from unittest.mock import MagicMock

import pytest
import requests

from weekend_backend.services.search_service import SerperSearchClient, format_search_results
from weekend_backend.utils.errors import OperationTimeout, SearchProviderError, SearchUnavailable

SERPER_RESPONSE = {
    "searchParameters": {"q": "sale zabaw Kraków"},
    "answerBox": {
        "title": "Best play areas",
        "link": "https://example.com/answer",
        "snippet": "Fabryka Zabawy is the largest play area.",
    },
    "organic": [
        {
            "title": "Fabryka Zabawy",
            "link": "https://fabrykazabawy.pl",
            "snippet": "Indoor play area for kids.",
            "date": "Oct 1, 2025",
        },
        {
            "title": "Muzeum Inżynierii",
            "link": "https://mim.krakow.pl",
            "snippet": "Interactive exhibitions.",
        },
    ],
    "peopleAlsoAsk": [
        {"question": "Where to go with kids in Kraków?", "snippet": "Try the museums."},
    ],
}


def _client(response=None, side_effect=None, api_key="test-key"):
    session = MagicMock()
    if side_effect is not None:
        session.post.side_effect = side_effect
    else:
        session.post.return_value = response
    return SerperSearchClient(api_key=api_key, session=session, timeout=5), session


def _response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


class TestFormatSearchResults:
    def test_includes_all_sections_in_order(self):
        text = format_search_results(SERPER_RESPONSE)

        assert text.index("Featured Answer:") < text.index("Search Results:") < text.index("People Also Ask:")
        assert "Search Query: sale zabaw Kraków" in text
        assert "1. Fabryka Zabawy" in text
        assert "   Link: https://fabrykazabawy.pl" in text
        assert "   Date: Oct 1, 2025" in text
        assert "2. Muzeum Inżynierii" in text

    def test_no_organic_results(self):
        text = format_search_results({"searchParameters": {"q": "nothing"}})

        assert "No results found." in text
        assert "Featured Answer:" not in text
        assert "People Also Ask:" not in text


class TestSerperSearchClient:
    def test_search_posts_payload_and_formats(self):
        client, session = _client(_response(json_data=SERPER_RESPONSE))

        text = client.search("sale zabaw Kraków", num_results=5)

        assert "1. Fabryka Zabawy" in text
        _, kwargs = session.post.call_args
        assert kwargs["json"]["q"] == "sale zabaw Kraków"
        assert kwargs["json"]["num"] == 5
        assert kwargs["json"]["autocorrect"] is True
        assert kwargs["headers"]["X-API-KEY"] == "test-key"
        assert kwargs["timeout"] == 5

    def test_num_results_is_clamped(self):
        client, session = _client(_response(json_data=SERPER_RESPONSE))

        client.query("q", num_results=500)

        assert session.post.call_args.kwargs["json"]["num"] == 100

    def test_non_2xx_raises_provider_error(self):
        client, _ = _client(_response(status_code=429, text="rate limited"))

        with pytest.raises(SearchProviderError) as exc_info:
            client.search("q")

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "rate limited"

    def test_invalid_json_raises_provider_error(self):
        client, _ = _client(_response(json_data=ValueError("no json")))

        with pytest.raises(SearchProviderError):
            client.search("q")

    def test_timeout_raises_operation_timeout(self):
        client, _ = _client(side_effect=requests.Timeout("slow"))

        with pytest.raises(OperationTimeout) as exc_info:
            client.search("q")

        assert exc_info.value.operation == "web_search"

    def test_connection_error_raises_unavailable(self):
        client, _ = _client(side_effect=requests.ConnectionError("refused"))

        with pytest.raises(SearchUnavailable):
            client.search("q")

    def test_missing_api_key_raises_unavailable(self):
        client, session = _client(_response(json_data=SERPER_RESPONSE), api_key="")

        with pytest.raises(SearchUnavailable):
            client.search("q")
        session.post.assert_not_called()
