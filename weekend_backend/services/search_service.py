"""
Serper web search client (Google Search API).

Wraps https://serper.dev behind a single search() call that returns a plain
text block, because the generative model consumes text rather than the
provider's JSON. Every call is a live request: caching happens one layer up,
on the whole recommendation result.
"""

import logging
from typing import Any, Dict, Optional

import requests

from weekend_backend.config import settings
from weekend_backend.utils.errors import (
    OperationTimeout,
    SearchProviderError,
    SearchUnavailable,
)

logger = logging.getLogger(__name__)

MAX_RESULTS = 100
DEFAULT_RESULTS = 10


def format_search_results(results: Dict[str, Any]) -> str:
    """
    Format a Serper response into a text summary for the model.

    Sections, in order: featured answer (answerBox), numbered organic results,
    "People Also Ask" questions. Missing sections are skipped.
    """
    query = results.get("searchParameters", {}).get("q", "")
    lines = [f"Search Query: {query}", ""]

    answer_box = results.get("answerBox")
    if answer_box:
        lines.append("Featured Answer:")
        lines.append(answer_box.get("snippet") or answer_box.get("answer", ""))
        lines.append(f"Source: {answer_box.get('title', '')} ({answer_box.get('link', '')})")
        lines.append("")

    organic = results.get("organic") or []
    if organic:
        lines.append("Search Results:")
        lines.append("")
        for index, item in enumerate(organic, start=1):
            lines.append(f"{index}. {item.get('title', '')}")
            lines.append(f"   {item.get('snippet', '')}")
            lines.append(f"   Link: {item.get('link', '')}")
            if item.get("date"):
                lines.append(f"   Date: {item['date']}")
            lines.append("")
    else:
        lines.append("No results found.")
        lines.append("")

    people_also_ask = results.get("peopleAlsoAsk") or []
    if people_also_ask:
        lines.append("People Also Ask:")
        lines.append("")
        for index, item in enumerate(people_also_ask, start=1):
            lines.append(f"{index}. {item.get('question', '')}")
            lines.append(f"   {item.get('snippet', '')}")
            lines.append("")

    return "\n".join(lines)


class SerperSearchClient:
    """Blocking Serper client; the agent runs it in a worker thread."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        country: Optional[str] = None,
        language: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SERPER_API_KEY
        self.api_url = api_url or settings.SERPER_API_URL
        self.country = country or settings.SEARCH_COUNTRY
        self.language = language or settings.SEARCH_LANGUAGE
        self.timeout = timeout or settings.SEARCH_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def query(self, query: str, num_results: int = DEFAULT_RESULTS) -> Dict[str, Any]:
        """
        Execute one search request.

        Raises:
            SearchProviderError: Non-2xx status or a body that is not JSON
            SearchUnavailable: Missing API key or connection failure
            OperationTimeout: Provider did not answer within the timeout
        """
        if not self.api_key:
            raise SearchUnavailable(
                "SERPER_API_KEY is not configured. Get an API key at https://serper.dev/"
            )

        payload = {
            "q": query,
            "num": max(1, min(int(num_results), MAX_RESULTS)),
            "gl": self.country,
            "hl": self.language,
            "autocorrect": True,
        }

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(f"Serper request timed out after {self.timeout}s")
            raise OperationTimeout("web_search", self.timeout) from e
        except requests.RequestException as e:
            logger.error(f"Serper request failed: {type(e).__name__}")
            raise SearchUnavailable(f"Search provider unreachable: {e}") from e

        if not response.ok:
            logger.warning(f"Serper returned status {response.status_code}")
            raise SearchProviderError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise SearchProviderError(response.status_code, "Response body is not valid JSON") from e

        if not isinstance(data, dict):
            raise SearchProviderError(response.status_code, "Unexpected response shape")

        return data

    def search(self, query: str, num_results: int = DEFAULT_RESULTS) -> str:
        """Search and return the formatted text block."""
        logger.info(f"web_search: num_results={num_results}")
        results = self.query(query, num_results)
        results.setdefault("searchParameters", {}).setdefault("q", query)
        return format_search_results(results)
