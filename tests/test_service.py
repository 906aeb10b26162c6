import asyncio
import base64

import pytest

from news_chat.errors import ConfigurationError, InvalidRequestError, UpstreamError
from news_chat.retrieval.lookup import NewsArticle, NewsLookupResult
from news_chat.retrieval.news_context import NewsContextBuilder
from news_chat.service.chat import ChatRequest, ChatService
from news_chat.workflow.chat import ChatWorkflow


class _FakeNews:
    def __init__(self, result: NewsLookupResult) -> None:
        self.result = result
        self.calls = 0

    async def lookup(self, query: str) -> NewsLookupResult:
        self.calls += 1
        return self.result


class _FakeLLM:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple] = []

    async def generate(self, prompt, params, image=None) -> str:
        self.calls.append((prompt, params, image))
        if self.error is not None:
            raise self.error
        return "Berikut ringkasan berita ekonomi [1]."


def _service(make_settings, news: _FakeNews, llm: _FakeLLM, **overrides) -> ChatService:
    settings = make_settings(**overrides)
    workflow = ChatWorkflow(
        settings,
        news_context=NewsContextBuilder(settings, search_provider=news),  # type: ignore[arg-type]
        llm_provider=llm,  # type: ignore[arg-type]
    )
    return ChatService(settings, workflow=workflow)


def _two_articles() -> NewsLookupResult:
    return NewsLookupResult.with_articles(
        [
            NewsArticle(title="title1", url="https://example.com/url1", source_name="S1"),
            NewsArticle(title="title2", url="https://example.com/url2", source_name="S2"),
        ]
    )


def test_news_prompt_returns_numbered_citations(make_settings) -> None:
    news = _FakeNews(_two_articles())
    llm = _FakeLLM()
    service = _service(make_settings, news, llm)

    result = asyncio.run(service.handle(ChatRequest(prompt="apa berita ekonomi hari ini")))

    assert result.output == "Berikut ringkasan berita ekonomi [1]."
    assert result.sources == [
        "1. [title1](https://example.com/url1)",
        "2. [title2](https://example.com/url2)",
    ]
    assert news.calls == 1


def test_plain_prompt_returns_fallback_source_without_news_call(make_settings) -> None:
    news = _FakeNews(_two_articles())
    service = _service(make_settings, news, _FakeLLM())

    result = asyncio.run(service.handle(ChatRequest(prompt="hi")))

    assert result.sources == ["Tidak ada sumber tambahan."]
    assert news.calls == 0


def test_failed_news_lookup_still_answers_with_fallback_source(make_settings) -> None:
    news = _FakeNews(NewsLookupResult.failed())
    service = _service(make_settings, news, _FakeLLM())

    result = asyncio.run(service.handle(ChatRequest(prompt="berita dunia")))

    assert result.sources == ["Tidak ada sumber tambahan."]
    assert news.calls == 1


@pytest.mark.parametrize("prompt", [None, "", "   "])
def test_missing_prompt_is_invalid(make_settings, prompt) -> None:
    llm = _FakeLLM()
    service = _service(make_settings, _FakeNews(_two_articles()), llm)

    with pytest.raises(InvalidRequestError) as exc_info:
        asyncio.run(service.handle(ChatRequest(prompt=prompt)))

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Prompt wajib diisi."
    assert llm.calls == []


def test_missing_gemini_key_never_calls_model(make_settings) -> None:
    news = _FakeNews(_two_articles())
    llm = _FakeLLM()
    service = _service(make_settings, news, llm, GEMINI_API_KEY="")

    with pytest.raises(ConfigurationError) as exc_info:
        asyncio.run(service.handle(ChatRequest(prompt="berita ekonomi")))

    assert exc_info.value.status_code == 500
    assert "GEMINI_API_KEY" in exc_info.value.message
    assert llm.calls == []
    assert news.calls == 0


def test_upstream_error_propagates_with_message(make_settings) -> None:
    service = _service(make_settings, _FakeNews(_two_articles()), _FakeLLM(error=UpstreamError("Quota exceeded")))

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(service.handle(ChatRequest(prompt="hi")))

    assert exc_info.value.message == "Quota exceeded"


def test_unexpected_error_becomes_upstream_error(make_settings) -> None:
    service = _service(make_settings, _FakeNews(_two_articles()), _FakeLLM(error=RuntimeError("boom")))

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(service.handle(ChatRequest(prompt="hi")))

    assert exc_info.value.message == "boom"


def test_request_parameters_reach_the_model(make_settings) -> None:
    llm = _FakeLLM()
    service = _service(make_settings, _FakeNews(_two_articles()), llm, GEMINI_MODEL="gemini-1.5-flash")

    asyncio.run(
        service.handle(
            ChatRequest(
                prompt="jelaskan gambar ini",
                image="data:image/png;base64,iVBORw0KGgo=",
                mime_type="image/jpeg",
                temperature=0.7,
                max_output_tokens=300,
                top_p=0.5,
                top_k=10,
            )
        )
    )

    _, params, image = llm.calls[0]
    assert params.model == "gemini-1.5-flash"
    assert (params.temperature, params.max_output_tokens, params.top_p, params.top_k) == (0.7, 300, 0.5, 10)
    assert image.data == base64.b64decode("iVBORw0KGgo=")
    assert image.mime_type == "image/jpeg"


@pytest.mark.parametrize("image", ["abc", "abcd!!!!", "data:image/png;base64,"])
def test_bad_image_is_rejected_before_news_lookup(make_settings, image) -> None:
    news = _FakeNews(_two_articles())
    llm = _FakeLLM()
    service = _service(make_settings, news, llm)

    with pytest.raises(InvalidRequestError) as exc_info:
        asyncio.run(service.handle(ChatRequest(prompt="berita ekonomi", image=image)))

    assert exc_info.value.status_code == 400
    assert exc_info.value.message.startswith("Gambar tidak valid")
    assert news.calls == 0
    assert llm.calls == []


def test_bad_image_is_reported_before_missing_key(make_settings) -> None:
    news = _FakeNews(_two_articles())
    service = _service(make_settings, news, _FakeLLM(), GEMINI_API_KEY="")

    with pytest.raises(InvalidRequestError):
        asyncio.run(service.handle(ChatRequest(prompt="berita ekonomi", image="abc")))

    assert news.calls == 0


def test_default_sampling_parameters(make_settings) -> None:
    llm = _FakeLLM()
    service = _service(make_settings, _FakeNews(_two_articles()), llm)

    asyncio.run(service.handle(ChatRequest(prompt="hi", model="gemini-2.5-flash")))

    _, params, image = llm.calls[0]
    assert params.model == "gemini-2.5-flash"
    assert (params.temperature, params.max_output_tokens, params.top_p, params.top_k) == (0.2, 1024, 0.8, 40)
    assert image is None
