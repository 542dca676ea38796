import asyncio
import inspect
import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from contextlib import asynccontextmanager

import httpx

from sitesmith.core.config import settings
from sitesmith.core.exceptions import DecodeError
from sitesmith.core.exceptions import EmptyResponseError
from sitesmith.core.exceptions import GenerationError
from sitesmith.core.exceptions import SessionBusyError
from sitesmith.core.exceptions import TransportError
from sitesmith.core.exceptions import UpstreamError
from sitesmith.generation_logic.session import GenerationSession
from sitesmith.generation_logic.static_content import DEFAULT_EXPLANATION
from sitesmith.generation_logic.static_content import wrap_improvement
from sitesmith.generation_logic.stream_normalizer import normalize
from sitesmith.models.generation_models import GenerationRequest
from sitesmith.models.generation_models import GenerationResult

__all__ = [
    "GenerationCoordinator",
    "PartialCallback",
]

logger = logging.getLogger(__name__)

PartialCallback = Callable[[str], Awaitable[None] | None]

FALLBACK_ERROR_MESSAGE = "Failed to generate code"


def _default_timeout() -> httpx.Timeout:
    return httpx.Timeout(settings.CLIENT_CONNECT_TIMEOUT, read=settings.CLIENT_READ_TIMEOUT)


def _upstream_error(response: httpx.Response) -> UpstreamError:
    """Build an UpstreamError from a non-success response's JSON ``{"error": ...}`` body."""
    message = None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        message = str(data["error"])
    if message is None:
        message = f"{FALLBACK_ERROR_MESSAGE} (HTTP {response.status_code})"
    return UpstreamError(message, status_code=response.status_code)


async def _emit(on_partial: PartialCallback, text: str) -> None:
    outcome = on_partial(text)
    if inspect.isawaitable(outcome):
        await outcome


class GenerationCoordinator:
    """Runs generation sessions against the generation endpoint.

    With ``on_partial`` the endpoint is asked to stream and every chunk that
    changes the normalized document is reported to the callback; without it a
    single JSON response is expected.

    Only one session may be in flight per coordinator. Callers are expected to
    gate submissions themselves; an overlapping ``generate`` call is rejected
    with ``SessionBusyError`` rather than queued.
    """

    def __init__(self, endpoint_url: str | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.endpoint_url = endpoint_url or settings.generate_endpoint_url
        self._client = client
        self._session: GenerationSession | None = None

    @property
    def session(self) -> GenerationSession | None:
        """The most recent session, in flight or finished."""
        return self._session

    @property
    def busy(self) -> bool:
        return self._session is not None and self._session.in_flight

    async def generate(
        self,
        request: GenerationRequest,
        on_partial: PartialCallback | None = None,
    ) -> GenerationResult:
        if self.busy:
            raise SessionBusyError("A generation is already in progress")

        session = GenerationSession(request)
        self._session = session
        session.start()
        logger.info(
            "[%s] Requesting generation (stream=%s, previous context: %d chars)",
            session.request_id,
            on_partial is not None,
            len(request.previous_context or ""),
        )

        try:
            if on_partial is not None:
                result = await self._generate_streaming(session, on_partial)
            else:
                result = await self._generate_once(session)
        except GenerationError as e:
            session.fail(e)
            raise
        except httpx.DecodingError as e:
            error = DecodeError(f"Could not decode response body: {e}")
            session.fail(error)
            raise error from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # InvalidURL is raised while building the request and is not an HTTPError
            error = TransportError(f"Could not reach the generation service: {str(e) or type(e).__name__}")
            session.fail(error)
            raise error from e
        except (Exception, asyncio.CancelledError) as e:
            # Callback errors and cancellation propagate unchanged
            session.fail(e)
            raise
        return session.complete(result)

    async def improve(
        self,
        document: str,
        instruction: str,
        on_partial: PartialCallback | None = None,
    ) -> GenerationResult:
        """Revise ``document`` according to ``instruction``."""
        request = GenerationRequest(prompt=wrap_improvement(instruction), previous_context=document)
        return await self.generate(request, on_partial)

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
        else:
            async with httpx.AsyncClient(timeout=_default_timeout()) as client:
                yield client

    async def _generate_streaming(self, session: GenerationSession, on_partial: PartialCallback) -> GenerationResult:
        payload = session.request.to_payload(stream=True)
        last_emitted = ""

        async with self._client_scope() as client:
            async with client.stream("POST", self.endpoint_url, json=payload) as response:
                if not response.is_success:
                    await response.aread()
                    raise _upstream_error(response)

                buffer = session.open_buffer(response.charset_encoding or "utf-8")
                async for chunk in response.aiter_bytes():
                    buffer.ingest(chunk)
                    partial = normalize(buffer)
                    logger.debug(
                        "[%s] Received %d bytes, buffer now %d chars",
                        session.request_id,
                        len(chunk),
                        len(buffer),
                    )
                    if partial and partial != last_emitted:
                        last_emitted = partial
                        await _emit(on_partial, partial)
                buffer.finish()

        document = normalize(buffer)
        if not document:
            raise EmptyResponseError("The generation service returned an empty document")
        return GenerationResult(document=document, explanation=DEFAULT_EXPLANATION)

    async def _generate_once(self, session: GenerationSession) -> GenerationResult:
        async with self._client_scope() as client:
            response = await client.post(self.endpoint_url, json=session.request.to_payload())

        if not response.is_success:
            raise _upstream_error(response)
        if not response.content:
            raise EmptyResponseError("The generation service returned an empty response")

        try:
            data = response.json()
        except UnicodeDecodeError as e:
            raise DecodeError("Malformed byte sequence in response body") from e
        except ValueError as e:
            raise EmptyResponseError("The generation service returned an unreadable response") from e

        if not isinstance(data, dict) or not data.get("code"):
            raise EmptyResponseError("The generation service returned no document")

        document = normalize(str(data["code"]))
        if not document:
            raise EmptyResponseError("The generation service returned an empty document")
        return GenerationResult(document=document, explanation=data.get("explanation") or DEFAULT_EXPLANATION)
