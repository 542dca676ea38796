import json
import logging
import pathlib
import re
from collections.abc import AsyncIterator
from typing import Any
from uuid import uuid4

import httpx
import jinja2
from openai import AsyncOpenAI
from openai import OpenAIError
from tenacity import RetryCallState
from tenacity import retry
from tenacity import stop_after_attempt
from tenacity import wait_exponential

from sitesmith.core.config import settings
from sitesmith.core.exceptions import ConfigurationError

# Configure module logger
logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when LLM call fails"""


class JSONParsingError(Exception):
    """Raised when JSON parsing fails"""


# --- Reusable Jinja2 Environment ---
PROMPT_DIR = pathlib.Path(__file__).parent / "prompt_templates"
SITE_TEMPLATE_NAME = "generate_site.jinja2"
env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(PROMPT_DIR),
    trim_blocks=True,
    lstrip_blocks=True,
)


# ---------------------------------------------------------------
# OpenRouter client (async) with required headers
# ---------------------------------------------------------------
timeout_config = httpx.Timeout(
    settings.LLM_CONNECT_TIMEOUT,
    read=settings.LLM_READ_TIMEOUT,
)

_client: AsyncOpenAI | None = None


def get_client() -> AsyncOpenAI:
    """Return the shared OpenRouter client, creating it on first use."""
    global _client
    if _client is None:
        if not settings.openrouter_api_key:
            logger.error("OPENROUTER_API_KEY is not configured; cannot create LLM client")
            raise ConfigurationError("Language model API key is not configured.")
        _client = AsyncOpenAI(
            base_url=settings.openrouter_base_url,
            api_key=settings.openrouter_api_key,
            default_headers={
                "X-Title": "sitesmith",
                # Authorization is auto‑added from api_key
            },
            timeout=timeout_config,
            max_retries=0,  # retries are handled by tenacity below
        )
    return _client


# ---------------------------------------------------------------
# Helper predicate for tenacity retry
# ---------------------------------------------------------------


def _should_retry_llm_call(retry_state: RetryCallState) -> bool:
    """Determines if a retry should occur based on the exception in RetryCallState."""
    if not retry_state.outcome:
        return False

    exc = retry_state.outcome.exception()
    if not exc:
        return False

    # Unwrap our custom LLMError to get to the original cause (e.g., OpenAIError)
    actual_exception = exc.__cause__ if isinstance(exc, LLMError) and exc.__cause__ else exc

    status = getattr(actual_exception, "status", None) or getattr(actual_exception, "status_code", None)
    if status in {429, 500, 502, 503, 504}:
        logger.debug("Retryable API error status %s detected. Retrying...", status)
        return True
    return False


_llm_retry = retry(
    wait=wait_exponential(multiplier=1, min=2, max=10),
    stop=stop_after_attempt(3),
    retry=_should_retry_llm_call,
    reraise=True,
)


def _messages(prompt: str) -> list[dict[str, str]]:
    return [{"role": "user", "content": prompt}]


@_llm_retry
async def call_llm(prompt: str, json_mode: bool = False) -> str:
    """Single, non-streaming completion. Returns the stripped message content."""
    request_id = str(uuid4())
    logger.info("[%s] Making LLM API call with model: %s", request_id, settings.model_id)

    extra: dict[str, Any] = {}
    if json_mode:
        extra["response_format"] = {"type": "json_object"}

    try:
        rsp = await get_client().chat.completions.create(
            model=settings.model_id,
            messages=_messages(prompt),
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            **extra,
        )
    except OpenAIError as e:
        logger.error("[%s] OpenAI API error: %s", request_id, str(e), exc_info=True)
        raise LLMError(f"OpenAI API error: {str(e)}") from e
    except ConfigurationError:
        raise
    except Exception as e:
        logger.exception("[%s] Unexpected error in LLM call", request_id)
        raise LLMError(f"Unexpected error in LLM call: {str(e)}") from e

    if not rsp or not getattr(rsp, "choices", None):
        logger.error("[%s] Invalid response structure from LLM API: %s", request_id, str(rsp))
        raise LLMError("Invalid response structure from LLM API")

    message = rsp.choices[0].message
    if message is None:
        logger.error("[%s] Missing 'message' in LLM API response", request_id)
        raise LLMError("Missing 'message' in LLM API response")

    content = (message.content or "").strip()
    logger.debug("[%s] LLM response received, length: %d chars", request_id, len(content))
    return content


@_llm_retry
async def _open_llm_stream(prompt: str, request_id: str) -> Any:
    try:
        return await get_client().chat.completions.create(
            model=settings.model_id,
            messages=_messages(prompt),
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            stream=True,
        )
    except OpenAIError as e:
        logger.error("[%s] OpenAI API error opening stream: %s", request_id, str(e), exc_info=True)
        raise LLMError(f"OpenAI API error: {str(e)}") from e


async def stream_llm(prompt: str, request_id: str | None = None) -> AsyncIterator[str]:
    """Stream a completion, yielding non-empty text deltas in arrival order.

    Opening the stream is retried like ``call_llm``; once text has started
    flowing, a provider failure ends the stream with ``LLMError``. The
    provider response is closed however iteration ends, including an early
    ``aclose()`` by the consumer.
    """
    request_id = request_id or str(uuid4())
    logger.info("[%s] Opening LLM stream with model: %s", request_id, settings.model_id)
    stream = await _open_llm_stream(prompt, request_id)

    async with stream:
        try:
            async for event in stream:
                if not event.choices:
                    continue
                delta = event.choices[0].delta
                text = getattr(delta, "content", None) if delta is not None else None
                if text:
                    yield text
        except OpenAIError as e:
            logger.error("[%s] OpenAI API error while streaming: %s", request_id, str(e))
            raise LLMError(f"OpenAI API error: {str(e)}") from e


# ---------------------------------------------------------------
# JSON extractor helper
# ---------------------------------------------------------------
def extract_json(text: str) -> dict:
    """Parse the JSON object in an LLM response, tolerating markdown fences and surrounding text."""
    request_id = str(uuid4())
    logger.debug("[%s] Attempting to parse JSON response, length: %d", request_id, len(text))

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        logger.warning("[%s] Initial JSON parse failed, attempting extraction strategies...", request_id)

    # Strategy 1: Markdown Code Fence Extraction
    match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", text, re.DOTALL)
    if match:
        try:
            result = json.loads(match.group(1))
            logger.info("[%s] Successfully parsed JSON from markdown code fence.", request_id)
            return result
        except json.JSONDecodeError:
            logger.warning("[%s] Failed to parse JSON from fenced block, trying next strategy...", request_id)

    # Strategy 2: raw_decode from the first object marker
    obj_start = text.find("{")
    if obj_start == -1:
        logger.error("[%s] No JSON object marker found in response", request_id)
        raise JSONParsingError("No JSON object marker found in response")
    try:
        obj, _ = json.JSONDecoder().raw_decode(text, obj_start)
        logger.info("[%s] Successfully parsed JSON using raw_decode.", request_id)
        return obj
    except json.JSONDecodeError as e:
        logger.error("[%s] Failed to parse JSON using raw_decode: %s", request_id, str(e))
    raise JSONParsingError("All strategies to parse JSON from LLM response failed.")


# ---------------------------------------------------------------
# Prompt builder
# ---------------------------------------------------------------
def build_site_prompt(prompt: str, previous_context: str | None = None, json_output: bool = False) -> str:
    """Render the site-generation prompt.

    The user's instruction and the previous document are rendered as two
    separately labelled sections so the model revises the document instead of
    quoting it.
    """
    try:
        template = env.get_template(SITE_TEMPLATE_NAME)
        return template.render(
            prompt=prompt.strip(),
            previous_context=previous_context,
            json_output=json_output,
        )
    except jinja2.TemplateNotFound:
        logger.error("Template not found: %s", SITE_TEMPLATE_NAME)
        raise ConfigurationError(f"Internal configuration error: Template '{SITE_TEMPLATE_NAME}' not found.") from None
