from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_NEWS_TRIGGER_KEYWORDS = (
    "berita,news,headline,politik,politics,ekonomi,economy,bola,sports,olahraga,dunia,world"
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_MODEL")
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")

    gnews_api_key: str = Field(default="", alias="GNEWS_API_KEY")
    gnews_search_url: str = Field(default="https://gnews.io/api/v4/search", alias="GNEWS_SEARCH_URL")
    gnews_lang: str = Field(default="id", alias="GNEWS_LANG")
    gnews_max_results: int = Field(default=3, alias="GNEWS_MAX_RESULTS")
    gnews_timeout_seconds: float = Field(default=10.0, alias="GNEWS_TIMEOUT_SECONDS")
    gnews_short_query_chars: int = Field(default=5, alias="GNEWS_SHORT_QUERY_CHARS")
    gnews_short_query_prefix: str = Field(default="berita terbaru", alias="GNEWS_SHORT_QUERY_PREFIX")
    gnews_title_chars: int = Field(default=60, alias="GNEWS_TITLE_CHARS")

    news_provider: str = Field(default="gnews", alias="NEWS_PROVIDER")
    news_trigger_keywords: str = Field(default=DEFAULT_NEWS_TRIGGER_KEYWORDS, alias="NEWS_TRIGGER_KEYWORDS")

    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=8000, alias="APP_PORT")

    def model_post_init(self, __context: Any) -> None:  # type: ignore[override]
        self.news_provider = self.news_provider.strip().lower() or "gnews"
        self.log_level = self.log_level.strip().upper() or "INFO"
        if self.gnews_max_results < 1:
            self.gnews_max_results = 1


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
