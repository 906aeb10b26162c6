from pydantic import BaseModel, ConfigDict, Field


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(default=None, description="User question forwarded to the model.")
    image: str | None = Field(default=None, description="Optional base64 image, raw or as a data URI.")
    mime_type: str | None = Field(default=None, alias="mimeType")
    model: str | None = Field(default=None, description="Gemini model id; defaults to GEMINI_MODEL.")
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_output_tokens: int = Field(default=1024, gt=0, alias="maxOutputTokens")
    top_p: float = Field(default=0.8, ge=0.0, le=1.0, alias="topP")
    top_k: int = Field(default=40, gt=0, alias="topK")


class GenerateResponse(BaseModel):
    output: str
    sources: list[str]


class ErrorResponse(BaseModel):
    error: str
