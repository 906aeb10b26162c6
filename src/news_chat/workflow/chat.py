import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from news_chat.config import Settings, get_settings
from news_chat.prompting.composer import compose_prompt
from news_chat.providers.llm.gemini import GeminiProvider, GenerationParams, InlineImage
from news_chat.retrieval.lookup import NewsArticle, NewsLookupResult
from news_chat.retrieval.news_context import NewsContextBuilder

logger = logging.getLogger(__name__)


@dataclass
class ChatOutput:
    text: str
    articles: tuple[NewsArticle, ...]
    news_lookup: NewsLookupResult | None
    news_triggered: bool


class ChatWorkflow:
    """News enrichment and generation implemented with LangGraph nodes.

    START routes to ``news_step`` only when the prompt matches a news keyword;
    otherwise it goes straight to ``compose_step``. Generation errors are
    raised out of ``run`` unchanged.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        news_context: NewsContextBuilder | None = None,
        llm_provider: GeminiProvider | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.news_context = news_context or NewsContextBuilder(self.settings)
        self.llm_provider = llm_provider or GeminiProvider(self.settings)

    async def run(
        self,
        prompt: str,
        params: GenerationParams,
        image: InlineImage | None = None,
        now: datetime | None = None,
    ) -> ChatOutput:
        from typing import TypedDict
        from langgraph.graph import END, START, StateGraph

        class ChatState(TypedDict):
            prompt: str
            news_text: str
            articles: tuple[NewsArticle, ...]
            news_lookup: NewsLookupResult | None
            composite_prompt: str
            output: str

        def route_news(state: ChatState) -> str:
            if self.news_context.should_fetch(state["prompt"]):
                logger.info("news.triggered")
                return "news"
            logger.info("news.skipped reason=no_keyword")
            return "compose"

        async def news_node(state: ChatState) -> dict[str, Any]:
            context = await self.news_context.gather(state["prompt"])
            return {
                "news_text": context.news_text,
                "articles": context.articles,
                "news_lookup": context.lookup,
            }

        async def compose_node(state: ChatState) -> dict[str, str]:
            logger.info("compose")
            return {"composite_prompt": compose_prompt(state["prompt"], state["news_text"], now=now)}

        async def generate_node(state: ChatState) -> dict[str, str]:
            logger.info("generate")
            text = await self.llm_provider.generate(state["composite_prompt"], params, image=image)
            return {"output": text}

        graph = StateGraph(ChatState)
        graph.add_node("news_step", news_node)
        graph.add_node("compose_step", compose_node)
        graph.add_node("generate_step", generate_node)
        graph.add_conditional_edges(START, route_news, {"news": "news_step", "compose": "compose_step"})
        graph.add_edge("news_step", "compose_step")
        graph.add_edge("compose_step", "generate_step")
        graph.add_edge("generate_step", END)

        app = graph.compile()
        final_state = await app.ainvoke(
            {
                "prompt": prompt,
                "news_text": "",
                "articles": (),
                "news_lookup": None,
                "composite_prompt": "",
                "output": "",
            }
        )

        news_lookup = final_state.get("news_lookup")
        return ChatOutput(
            text=str(final_state.get("output", "")),
            articles=tuple(final_state.get("articles") or ()),
            news_lookup=news_lookup,
            news_triggered=news_lookup is not None,
        )
