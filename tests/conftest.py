from collections.abc import Callable

import pytest

from news_chat.config import Settings


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "GEMINI_API_KEY": "test-gemini-key",
            "GNEWS_API_KEY": "test-gnews-key",
            "NEWS_PROVIDER": "gnews",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
