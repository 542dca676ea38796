import logging
from uuid import uuid4

from sitesmith.core.exceptions import GenerationError
from sitesmith.core.exceptions import SessionStateError
from sitesmith.generation_logic.stream_normalizer import StreamBuffer
from sitesmith.models.generation_models import GenerationRequest
from sitesmith.models.generation_models import GenerationResult
from sitesmith.models.generation_models import SessionState

__all__ = ["GenerationSession"]

logger = logging.getLogger(__name__)


class GenerationSession:
    """State and private resources of one request/response generation cycle.

    IDLE -> IN_FLIGHT on start, then COMPLETED or FAILED. Both terminal states
    are final: a session object is never resumed or restarted. The stream
    buffer exists only while the session is in flight.
    """

    def __init__(self, request: GenerationRequest) -> None:
        self.request = request
        self.request_id = str(uuid4())
        self.state = SessionState.IDLE
        self.buffer: StreamBuffer | None = None
        self.result: GenerationResult | None = None
        self.error: BaseException | None = None

    @property
    def in_flight(self) -> bool:
        return self.state is SessionState.IN_FLIGHT

    def start(self) -> None:
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot start a session in state '{self.state.value}'")
        self.state = SessionState.IN_FLIGHT
        logger.info("[%s] Generation session started", self.request_id)

    def open_buffer(self, encoding: str = "utf-8") -> StreamBuffer:
        """Create the session's stream buffer. Only one buffer per session."""
        if not self.in_flight:
            raise SessionStateError(f"Cannot open a stream buffer in state '{self.state.value}'")
        if self.buffer is not None:
            raise SessionStateError("Stream buffer already opened for this session")
        self.buffer = StreamBuffer(encoding)
        return self.buffer

    def complete(self, result: GenerationResult) -> GenerationResult:
        if not self.in_flight:
            raise SessionStateError(f"Cannot complete a session in state '{self.state.value}'")
        self.state = SessionState.COMPLETED
        self.result = result
        self.buffer = None
        logger.info("[%s] Generation session completed: %d chars", self.request_id, len(result.document))
        return result

    def fail(self, error: BaseException) -> None:
        if not self.in_flight:
            raise SessionStateError(f"Cannot fail a session in state '{self.state.value}'")
        self.state = SessionState.FAILED
        self.error = error
        self.buffer = None
        if isinstance(error, GenerationError):
            logger.error("[%s] Generation session failed (%s): %s", self.request_id, error.kind, str(error))
        else:
            logger.warning("[%s] Generation session aborted: %r", self.request_id, error)
