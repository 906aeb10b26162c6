import logging
import re
from dataclasses import dataclass

from news_chat.config import Settings
from news_chat.providers.search.gnews import GNewsSearch
from news_chat.providers.search.mock import MockNewsSearch
from news_chat.retrieval.lookup import LOOKUP_ERROR_MESSAGE, NewsArticle, NewsLookupResult

logger = logging.getLogger(__name__)
NO_SOURCES_CITATION = "Tidak ada sumber tambahan."


@dataclass(frozen=True)
class NewsContext:
    news_text: str
    articles: tuple[NewsArticle, ...]
    lookup: NewsLookupResult


class NewsContextBuilder:
    """Decides whether a prompt needs news and turns a lookup into prompt text.

    The trigger is a case-insensitive substring match against a fixed keyword
    list. It over-triggers on unrelated prompts containing e.g. "world" and
    misses synonyms that are not listed; scripts/eval_news_trigger.py measures it.
    """

    def __init__(
        self,
        settings: Settings,
        search_provider: GNewsSearch | MockNewsSearch | None = None,
    ) -> None:
        self.settings = settings
        self.search_provider = search_provider or self._default_provider(settings)
        self.keywords = self._parse_keywords(settings.news_trigger_keywords)
        self._pattern = self._compile(self.keywords)

    def should_fetch(self, prompt: str) -> bool:
        if self._pattern is None:
            return False
        return self._pattern.search(prompt) is not None

    async def gather(self, prompt: str) -> NewsContext:
        try:
            lookup = await self.search_provider.lookup(prompt)
        except Exception as exc:
            logger.warning("news.lookup_failed type=%s detail=%s", exc.__class__.__name__, str(exc))
            lookup = NewsLookupResult.failed(LOOKUP_ERROR_MESSAGE)

        logger.info("news.lookup status=%s articles=%d", lookup.status.value, len(lookup.articles))
        if lookup.found:
            return NewsContext(
                news_text=self.build_news_text(lookup.articles),
                articles=lookup.articles,
                lookup=lookup,
            )
        return NewsContext(news_text=lookup.message, articles=(), lookup=lookup)

    @staticmethod
    def build_news_text(articles: tuple[NewsArticle, ...] | list[NewsArticle]) -> str:
        blocks = [
            f"({index}) {article.title} - {article.source_name}\n{article.url}"
            for index, article in enumerate(articles, start=1)
        ]
        return "\n\n".join(blocks)

    @staticmethod
    def format_citations(articles: tuple[NewsArticle, ...] | list[NewsArticle]) -> list[str]:
        if not articles:
            return [NO_SOURCES_CITATION]
        return [f"{index}. [{article.title}]({article.url})" for index, article in enumerate(articles, start=1)]

    @staticmethod
    def _default_provider(settings: Settings) -> GNewsSearch | MockNewsSearch:
        if settings.news_provider == "mock":
            return MockNewsSearch()
        return GNewsSearch(settings)

    @staticmethod
    def _parse_keywords(raw: str) -> list[str]:
        return [item.strip().lower() for item in raw.split(",") if item.strip()]

    @staticmethod
    def _compile(keywords: list[str]) -> re.Pattern[str] | None:
        if not keywords:
            return None
        return re.compile("|".join(re.escape(keyword) for keyword in keywords), re.IGNORECASE)
