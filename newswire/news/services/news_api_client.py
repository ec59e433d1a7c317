"""
NewsAPI client
Runs one /everything search per topic and returns the raw article records.
"""

from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import ValidationError

from ...core.exceptions import PlanRestrictedError, UpstreamError
from ..schemas.upstream import RawArticle

logger = structlog.get_logger(__name__)


class NewsApiClient:
    SEARCH_PATH = "/everything"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://newsapi.org/v2",
        timeout_seconds: float = 15.0,
        language: str = "en",
        sort_by: str = "publishedAt",
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.language = language
        self.sort_by = sort_by

    @classmethod
    def from_settings(cls, settings) -> "NewsApiClient":
        return cls(
            api_key=settings.news_api_key,
            base_url=settings.news_api_base_url,
            timeout_seconds=settings.news_api_timeout_seconds,
            language=settings.news_api_language,
            sort_by=settings.news_api_sort_by,
        )

    def _build_params(self, topic: str) -> Dict[str, str]:
        return {
            "q": topic,
            "language": self.language,
            "sortBy": self.sort_by,
            "apiKey": self.api_key or "",
        }

    async def search(self, topic: str) -> List[RawArticle]:
        """
        Search NewsAPI for a topic keyword, newest first.

        Raises:
            PlanRestrictedError: NewsAPI answered 426 (plan not usable from a server)
            UpstreamError: any other network, HTTP or payload failure
        """
        url = f"{self.base_url}{self.SEARCH_PATH}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.get(url, params=self._build_params(topic))
        except httpx.TimeoutException:
            raise UpstreamError("Request timed out", topic=topic)
        except httpx.RequestError as e:
            raise UpstreamError(f"Request failed: {str(e)}", topic=topic)

        payload = self._decode(response)

        if response.status_code >= 400 or payload.get("status") == "error":
            message = payload.get("message") or f"HTTP {response.status_code}"
            if response.status_code == PlanRestrictedError.STATUS_CODE:
                raise PlanRestrictedError(message, topic=topic)
            raise UpstreamError(message, status_code=response.status_code, topic=topic)

        return self._parse_articles(topic, payload.get("articles"))

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            if response.status_code >= 400:
                return {}
            raise UpstreamError("Response body is not valid JSON", status_code=response.status_code)
        return payload if isinstance(payload, dict) else {}

    def _parse_articles(self, topic: str, items: Any) -> List[RawArticle]:
        if not isinstance(items, list):
            return []

        articles = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                articles.append(RawArticle.model_validate(item))
            except ValidationError as e:
                logger.warning("upstream_article_malformed", topic=topic, error=str(e))

        logger.info("upstream_search_completed", topic=topic, returned=len(articles))
        return articles
