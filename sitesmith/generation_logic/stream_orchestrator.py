"""Server-side half of the generation endpoint.

Produces what the coordinator consumes: either a raw text stream of model
output, or one ``{"code", "explanation"}`` payload.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from sitesmith.generation_logic.static_content import DEFAULT_EXPLANATION
from sitesmith.generation_logic.stream_normalizer import normalize
from sitesmith.services.llm import JSONParsingError
from sitesmith.services.llm import LLMError
from sitesmith.services.llm import build_site_prompt
from sitesmith.services.llm import call_llm
from sitesmith.services.llm import extract_json
from sitesmith.services.llm import stream_llm

__all__ = [
    "_generate_site_document",
    "_open_site_stream",
]

logger = logging.getLogger(__name__)


async def _open_site_stream(
    prompt: str,
    previous_context: str | None,
    request_id: str,
) -> AsyncIterator[str]:
    """Start the model stream and wait for its first text chunk.

    Failures up to that point raise here, while the endpoint can still answer
    with an error status. The returned iterator replays the first chunk and
    then relays the rest.
    """
    llm_prompt = build_site_prompt(prompt, previous_context, json_output=False)
    stream = stream_llm(llm_prompt, request_id)
    try:
        first_chunk = await stream.__anext__()
    except StopAsyncIteration:
        logger.error("[%s] Language model stream ended before producing any text", request_id)
        raise LLMError("Language model returned an empty response.") from None
    logger.info("[%s] Language model stream started", request_id)
    return _relay_site_stream(first_chunk, stream, request_id)


async def _relay_site_stream(
    first_chunk: str,
    stream: AsyncIterator[str],
    request_id: str,
) -> AsyncIterator[str]:
    total_chars = 0
    try:
        yield first_chunk
        total_chars += len(first_chunk)
        async for chunk in stream:
            total_chars += len(chunk)
            yield chunk
    except LLMError as le:
        # Status line is already sent; aborting the body is the only signal left
        logger.error("[%s] LLMError after streaming %d chars: %s", request_id, total_chars, str(le))
        raise
    finally:
        await stream.aclose()
        logger.info("[%s] Stream generation logic finished: %d chars relayed", request_id, total_chars)


async def _generate_site_document(
    prompt: str,
    previous_context: str | None,
    request_id: str,
) -> dict[str, Any]:
    """Run one non-streaming generation and return the ``{"code", "explanation"}`` payload."""
    llm_prompt = build_site_prompt(prompt, previous_context, json_output=True)
    raw_response = await call_llm(llm_prompt, json_mode=True)
    data = extract_json(raw_response)

    if not isinstance(data, dict):
        logger.error("[%s] Expected a JSON object from the model, got %s", request_id, type(data).__name__)
        raise JSONParsingError("Language model returned an unexpected JSON structure.")

    code = normalize(str(data.get("code") or ""))
    if not code:
        logger.error("[%s] Model response has no 'code' field: %s", request_id, str(data)[:200])
        raise LLMError("Language model returned no document.")

    explanation = str(data.get("explanation") or DEFAULT_EXPLANATION)
    logger.info("[%s] Generated document: %d chars", request_id, len(code))
    return {"code": code, "explanation": explanation}
