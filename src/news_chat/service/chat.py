import logging
from dataclasses import dataclass, field

from news_chat.config import Settings, get_settings
from news_chat.errors import (
    GENERIC_ERROR_MESSAGE,
    ChatError,
    ConfigurationError,
    InvalidRequestError,
    UpstreamError,
)
from news_chat.providers.llm.gemini import GenerationParams, InlineImage
from news_chat.retrieval.news_context import NewsContextBuilder
from news_chat.workflow.chat import ChatWorkflow

logger = logging.getLogger(__name__)
PROMPT_REQUIRED_MESSAGE = "Prompt wajib diisi."
MISSING_GEMINI_KEY_MESSAGE = "GEMINI_API_KEY belum diset."


@dataclass
class ChatRequest:
    prompt: str | None
    image: str | None = None
    mime_type: str | None = None
    model: str | None = None
    temperature: float = 0.2
    max_output_tokens: int = 1024
    top_p: float = 0.8
    top_k: int = 40


@dataclass
class GenerationResult:
    output: str
    sources: list[str] = field(default_factory=list)


class ChatService:
    def __init__(self, settings: Settings | None = None, workflow: ChatWorkflow | None = None) -> None:
        self.settings = settings or get_settings()
        self.workflow = workflow or ChatWorkflow(self.settings)

    async def handle(self, request: ChatRequest) -> GenerationResult:
        prompt = request.prompt
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidRequestError(PROMPT_REQUIRED_MESSAGE)
        # Decoded here so a bad image fails before any outbound call.
        image = InlineImage.from_encoded(request.image, request.mime_type) if request.image else None
        if not self.settings.gemini_api_key:
            logger.error("chat.config_missing setting=GEMINI_API_KEY")
            raise ConfigurationError(MISSING_GEMINI_KEY_MESSAGE)

        params = GenerationParams(
            model=(request.model or "").strip() or self.settings.gemini_model,
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
            top_p=request.top_p,
            top_k=request.top_k,
        )

        try:
            output = await self.workflow.run(prompt, params, image=image)
        except ChatError:
            raise
        except Exception as exc:
            logger.exception("chat.failed model=%s", params.model)
            raise UpstreamError(str(exc).strip() or GENERIC_ERROR_MESSAGE) from exc

        sources = NewsContextBuilder.format_citations(output.articles)
        news_meta = output.news_lookup.as_meta() if output.news_lookup else {}
        logger.info(
            "chat.meta model=%s news_triggered=%s news_status=%s sources=%d output_chars=%d",
            params.model,
            output.news_triggered,
            news_meta.get("news_status", "skipped"),
            len(output.articles),
            len(output.text),
        )
        return GenerationResult(output=output.text, sources=sources)
