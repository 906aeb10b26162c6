import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from google import genai
from google.genai import types

from news_chat.config import Settings
from news_chat.errors import GENERIC_ERROR_MESSAGE, InvalidRequestError, UpstreamError

logger = logging.getLogger(__name__)
ERROR_LOG_LIMIT = 1000
DEFAULT_IMAGE_MIME_TYPE = "image/png"
DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")


@dataclass(frozen=True)
class GenerationParams:
    model: str
    temperature: float = 0.2
    max_output_tokens: int = 1024
    top_p: float = 0.8
    top_k: int = 40


@dataclass(frozen=True)
class InlineImage:
    """Decoded image bytes ready to be sent as an inline part."""

    data: bytes
    mime_type: str = DEFAULT_IMAGE_MIME_TYPE

    @classmethod
    def from_encoded(cls, encoded: str, mime_type: str | None = None) -> "InlineImage":
        """Strip a ``data:image/<subtype>;base64,`` prefix and strictly decode the rest."""
        try:
            data = base64.b64decode(strip_data_uri(encoded), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidRequestError("Gambar tidak valid: data base64 rusak.") from exc
        if not data:
            raise InvalidRequestError("Gambar tidak valid: data kosong.")
        return cls(data=data, mime_type=mime_type or DEFAULT_IMAGE_MIME_TYPE)


def strip_data_uri(encoded: str) -> str:
    return DATA_URI_PREFIX.sub("", encoded, count=1)


class GeminiProvider:
    """Gemini text generation through the google-genai async client."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: genai.Client | None = None

    async def generate(self, prompt: str, params: GenerationParams, image: InlineImage | None = None) -> str:
        parts = self.build_parts(prompt, image)
        config = types.GenerateContentConfig(
            temperature=params.temperature,
            max_output_tokens=params.max_output_tokens,
            top_p=params.top_p,
            top_k=params.top_k,
        )
        logger.info(
            "llm.call model=%s parts=%d timeout=%.1fs temperature=%s max_output_tokens=%d",
            params.model,
            len(parts),
            self.settings.llm_timeout_seconds,
            params.temperature,
            params.max_output_tokens,
        )
        logger.debug("llm.request.full model=%s\n%s", params.model, prompt)
        try:
            response = await self._get_client().aio.models.generate_content(
                model=params.model,
                contents=[types.Content(role="user", parts=parts)],
                config=config,
            )
        except Exception as exc:
            logger.error(
                "llm.error model=%s type=%s detail=%s",
                params.model,
                exc.__class__.__name__,
                self._extract_error_detail(exc),
            )
            raise UpstreamError(self._error_message(exc)) from exc

        text = self.response_text(response)
        logger.debug("llm.response.full model=%s\n%s", params.model, text)
        return text

    def build_parts(self, prompt: str, image: InlineImage | None = None) -> list[types.Part]:
        parts = [types.Part.from_text(text=prompt)]
        if image is not None:
            parts.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
        return parts

    @classmethod
    def response_text(cls, response: Any) -> str:
        try:
            text = response.text
        except Exception as exc:
            logger.warning("llm.text_unavailable type=%s detail=%s", exc.__class__.__name__, str(exc))
            text = None
        if text is None:
            return cls._serialize(response)
        return str(text)

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(
                api_key=self.settings.gemini_api_key,
                http_options=types.HttpOptions(timeout=int(self.settings.llm_timeout_seconds * 1000)),
            )
        return self._client

    @staticmethod
    def _serialize(response: Any) -> str:
        dump = getattr(response, "model_dump_json", None)
        if callable(dump):
            try:
                return dump(exclude_none=True)
            except Exception:
                pass
        try:
            return json.dumps(response, ensure_ascii=False, default=str)
        except Exception:
            return str(response)

    @staticmethod
    def _error_message(exc: Exception) -> str:
        message = getattr(exc, "message", None) or str(exc)
        return str(message).strip() or GENERIC_ERROR_MESSAGE

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        normalized = " ".join(text.split()).strip()
        if len(normalized) <= limit:
            return normalized
        return f"{normalized[:limit]}...(truncated)"

    def _extract_error_detail(self, exc: Exception) -> str:
        status_code = getattr(exc, "code", None) or getattr(exc, "status_code", None)
        status = getattr(exc, "status", None)
        message = getattr(exc, "message", None) or str(exc)
        details = [f"status_code={status_code}" if status_code is not None else ""]
        if status is not None:
            details.append(f"status={status}")
        details.append(f"message={message}")
        detail = " ".join([part for part in details if part]).strip()
        if self.settings.gemini_api_key:
            detail = detail.replace(self.settings.gemini_api_key, "***")
        return self._clip(detail, ERROR_LOG_LIMIT)
