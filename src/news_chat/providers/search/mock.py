from news_chat.retrieval.lookup import NewsArticle, NewsLookupResult


class MockNewsSearch:
    """Offline news provider with a fixed structure, selected by NEWS_PROVIDER=mock."""

    async def lookup(self, query: str) -> NewsLookupResult:
        return NewsLookupResult.with_articles(
            [
                NewsArticle(
                    title=f"Sorotan terkini: {query}",
                    url="https://example.com/berita/sorotan",
                    source_name="Contoh Harian",
                ),
                NewsArticle(
                    title=f"Analisis singkat seputar {query}",
                    url="https://example.com/berita/analisis",
                    source_name="Contoh Ekonomi",
                ),
            ]
        )
