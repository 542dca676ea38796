import logging
from uuid import uuid4

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from pydantic import Field as PydanticField

from sitesmith.core.config import settings
from sitesmith.generation_logic.static_content import QUICK_PROMPTS

# Generation-logic helpers -------------------------------------------------
from sitesmith.generation_logic.stream_orchestrator import _generate_site_document
from sitesmith.generation_logic.stream_orchestrator import _open_site_stream

# Configure module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class GeneratePayload(BaseModel):
    prompt: str = PydanticField(..., min_length=1, description="Natural-language description of the site or change.")
    previousContext: str | None = PydanticField(default=None, description="The last accepted document, revised in place.")
    stream: bool = PydanticField(default=False, description="Stream raw document text instead of one JSON payload.")


class GenerateResponse(BaseModel):
    code: str
    explanation: str


@router.post("/generate", response_model=None)
async def generate(payload: GeneratePayload) -> GenerateResponse | StreamingResponse:
    """
    Generates a complete HTML document from a natural-language prompt.

    When `previousContext` is given, it is treated as the current document and
    revised according to `prompt`.

    - `stream: false` returns `{"code": ..., "explanation": ...}`.
    - `stream: true` returns a chunked `text/plain` body of raw model output.
      Failures before the first chunk still return a JSON `{"error": ...}`
      object with a non-200 status.
    """
    request_id = str(uuid4())
    logger.info(
        "[%s] /generate called (stream=%s, prompt: %d chars, previous context: %d chars)",
        request_id,
        payload.stream,
        len(payload.prompt),
        len(payload.previousContext or ""),
    )

    if not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")

    total_chars = len(payload.prompt) + len(payload.previousContext or "")
    if total_chars > settings.max_prompt_chars:
        logger.warning("[%s] Prompt too large: %d chars", request_id, total_chars)
        raise HTTPException(status_code=413, detail=f"Prompt too large: {total_chars} characters exceeds limit of {settings.max_prompt_chars}")

    if payload.stream:
        chunks = await _open_site_stream(payload.prompt, payload.previousContext, request_id)
        return StreamingResponse(chunks, media_type="text/plain; charset=utf-8")

    result = await _generate_site_document(payload.prompt, payload.previousContext, request_id)
    return GenerateResponse(**result)


@router.get("/prompts")
async def quick_prompts() -> dict[str, list[str]]:
    """Predefined starter prompts for quick generation."""
    return {"prompts": QUICK_PROMPTS}
