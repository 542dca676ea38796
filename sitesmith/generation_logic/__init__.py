"""Generation logic package.

Client side: ``StreamBuffer``/``normalize`` turn a fragmented byte stream into
a presentation-ready HTML document, and ``GenerationCoordinator`` runs one
generation session at a time against the generation endpoint.
Server side: the stream orchestrator helpers that back that endpoint.
"""

from .coordinator import GenerationCoordinator  # noqa: F401
from .session import GenerationSession  # noqa: F401
from .stream_normalizer import StreamBuffer  # noqa: F401
from .stream_normalizer import normalize  # noqa: F401
