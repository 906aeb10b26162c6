from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

NOT_CONFIGURED_MESSAGE = "API Key GNews belum diset."
FETCH_FAILED_MESSAGE = "Gagal mengambil berita."
NO_RESULTS_MESSAGE = "Tidak ada berita terkait."
LOOKUP_ERROR_MESSAGE = "Terjadi kesalahan saat mengambil berita."
FOUND_MESSAGE = "Berhasil mengambil berita."


class NewsArticle(BaseModel):
    """One news article as returned by the search endpoint, flattened."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    source_name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _flatten_source(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "source_name" in data:
            return data
        row = dict(data)
        source = row.pop("source", None)
        if isinstance(source, dict):
            row["source_name"] = str(source.get("name") or "")
        elif isinstance(source, str):
            row["source_name"] = source
        return row

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if urlparse(value).scheme.lower() not in {"http", "https"}:
            raise ValueError("url must use http or https")
        return value


class LookupStatus(str, Enum):
    FOUND = "found"
    NO_RESULTS = "no_results"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"


@dataclass(frozen=True)
class NewsLookupResult:
    """Outcome of one news lookup.

    ``articles`` is non-empty exactly when ``status`` is FOUND. Every other
    status carries a human-readable ``message`` that stands in for the news
    block of the composed prompt.
    """

    status: LookupStatus
    articles: tuple[NewsArticle, ...] = ()
    message: str = ""

    def __post_init__(self) -> None:
        if (self.status is LookupStatus.FOUND) != bool(self.articles):
            raise ValueError(f"status={self.status.value} does not match articles={len(self.articles)}")

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    @classmethod
    def with_articles(cls, articles: list[NewsArticle]) -> "NewsLookupResult":
        if not articles:
            return cls.no_results()
        return cls(status=LookupStatus.FOUND, articles=tuple(articles), message=FOUND_MESSAGE)

    @classmethod
    def no_results(cls) -> "NewsLookupResult":
        return cls(status=LookupStatus.NO_RESULTS, message=NO_RESULTS_MESSAGE)

    @classmethod
    def not_configured(cls) -> "NewsLookupResult":
        return cls(status=LookupStatus.NOT_CONFIGURED, message=NOT_CONFIGURED_MESSAGE)

    @classmethod
    def failed(cls, message: str = LOOKUP_ERROR_MESSAGE) -> "NewsLookupResult":
        return cls(status=LookupStatus.FAILED, message=message)

    def as_meta(self) -> dict:
        return {
            "news_status": self.status.value,
            "news_message": self.message,
            "news_articles": len(self.articles),
        }
