import logging
import json
from typing import Any

import httpx
from pydantic import ValidationError

from news_chat.config import Settings
from news_chat.retrieval.lookup import (
    FETCH_FAILED_MESSAGE,
    LOOKUP_ERROR_MESSAGE,
    NewsArticle,
    NewsLookupResult,
)

logger = logging.getLogger(__name__)
PAYLOAD_LOG_LIMIT = 4000
ERROR_LOG_LIMIT = 1000


class GNewsSearch:
    """GNews search provider. Failures come back as a NewsLookupResult, never raised."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self.search_url = settings.gnews_search_url
        self.lang = settings.gnews_lang
        self.max_results = settings.gnews_max_results
        self.transport = transport

    async def lookup(self, query: str) -> NewsLookupResult:
        if not self.settings.gnews_api_key:
            logger.warning("gnews.skipped reason=missing_api_key")
            return NewsLookupResult.not_configured()

        search_query = self.expand_query(query)
        request_params = {
            "q": search_query,
            "lang": self.lang,
            "max": self.max_results,
        }
        logger.info(
            "gnews.request query=%s lang=%s max_results=%d",
            self._clip(search_query, 80),
            self.lang,
            self.max_results,
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.gnews_timeout_seconds,
                transport=self.transport,
            ) as client:
                http_response = await client.get(
                    self.search_url,
                    params={**request_params, "apikey": self.settings.gnews_api_key},
                )
            if not http_response.is_success:
                logger.error(
                    "gnews.error status=%d reason=%s",
                    http_response.status_code,
                    http_response.reason_phrase,
                )
                return NewsLookupResult.failed(FETCH_FAILED_MESSAGE)
            response = http_response.json()
        except Exception as exc:
            logger.error("gnews.error type=%s detail=%s", exc.__class__.__name__, self._redact(str(exc)))
            return NewsLookupResult.failed(LOOKUP_ERROR_MESSAGE)

        if not isinstance(response, dict):
            logger.error("gnews.error type=unexpected_body detail=%s", type(response).__name__)
            return NewsLookupResult.failed(LOOKUP_ERROR_MESSAGE)

        articles = self.parse_articles(response.get("articles"))
        logger.info(
            "gnews.response articles=%d top_titles=%s",
            len(articles),
            ", ".join([self._clip(item.title, self.settings.gnews_title_chars) for item in articles]) or "none",
        )
        logger.debug(
            "gnews.response.payload=%s",
            self._clip(self._to_json(response), PAYLOAD_LOG_LIMIT),
        )
        return NewsLookupResult.with_articles(articles)

    def expand_query(self, query: str) -> str:
        if len(query) < self.settings.gnews_short_query_chars:
            return f"{self.settings.gnews_short_query_prefix} {query}"
        return query

    def parse_articles(self, raw_articles: Any) -> list[NewsArticle]:
        if not isinstance(raw_articles, list):
            return []
        articles: list[NewsArticle] = []
        for index, item in enumerate(raw_articles):
            try:
                articles.append(NewsArticle.model_validate(item))
            except ValidationError as exc:
                logger.warning("gnews.article_skipped index=%d errors=%d", index, exc.error_count())
                continue
            if len(articles) >= self.max_results:
                break
        return articles

    def _redact(self, text: str) -> str:
        api_key = self.settings.gnews_api_key
        if api_key:
            text = text.replace(api_key, "***")
        return self._clip(text, ERROR_LOG_LIMIT)

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        normalized = " ".join(text.split()).strip()
        if len(normalized) <= limit:
            return normalized
        return f"{normalized[:limit]}...(truncated)"

    @staticmethod
    def _to_json(payload: Any) -> str:
        try:
            return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        except Exception:
            return str(payload)
