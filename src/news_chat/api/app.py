import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from news_chat.api.schemas import ErrorResponse, GenerateRequest, GenerateResponse
from news_chat.config import Settings, get_settings
from news_chat.errors import ChatError
from news_chat.service.chat import PROMPT_REQUIRED_MESSAGE, ChatRequest, ChatService

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
# httpx logs full request URLs at INFO, and the GNews key travels in the query string.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

app = FastAPI(title="gemini-news-chat", version="0.1.0")
service = ChatService(settings)


def _add_cors(app: FastAPI, settings: Settings) -> None:
    """Let the browser chat page call the API from another origin."""
    origins = [item.strip() for item in settings.cors_allow_origins.split(",") if item.strip()] or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Starlette rejects wildcard origins combined with credentials.
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )


_add_cors(app, settings)


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    logger.warning("request.failed path=%s type=%s status=%d", request.url.path, exc.__class__.__name__, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.as_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields: list[str] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields.append(".".join(loc) or "body")
    if "prompt" in fields:
        message = PROMPT_REQUIRED_MESSAGE
    else:
        message = f"Permintaan tidak valid: {', '.join(fields) or 'body'}"
    logger.info("request.invalid path=%s fields=%s", request.url.path, fields)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@app.post(
    "/api/generate",
    response_model=GenerateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def generate(req: GenerateRequest) -> GenerateResponse:
    result = await service.handle(ChatRequest(**req.model_dump()))
    return GenerateResponse(output=result.output, sources=result.sources)


def run() -> None:
    import uvicorn

    uvicorn.run("news_chat.api.app:app", host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    run()
