"""Incremental consumer for a streamed HTML document.

The generation endpoint streams raw model output: plain text chunks that,
once accumulated and stripped of markdown code fences, form the target
document. Chunk boundaries are arbitrary, so a multi-byte character or a
fence marker may be split across two reads. ``StreamBuffer`` owns an explicit
incremental decoder to handle the former; ``normalize`` always works on the
entire accumulated text to handle the latter.
"""

import codecs
import logging
import re

from sitesmith.core.exceptions import DecodeError
from sitesmith.generation_logic.static_content import CANONICAL_DOCTYPE

__all__ = [
    "StreamBuffer",
    "normalize",
]

logger = logging.getLogger(__name__)

# Opening fences for the markup language tag, then any remaining fence
_OPEN_FENCE_RE = re.compile(r"```html\n?", re.IGNORECASE)
_CLOSE_FENCE_RE = re.compile(r"```\n?")
_DOCTYPE_RE = re.compile(r"<!doctype\b", re.IGNORECASE)
_ROOT_TAG_RE = re.compile(r"<html(?=[\s>])", re.IGNORECASE)


class StreamBuffer:
    """Accumulates decoded text for exactly one generation session.

    The decoder keeps partial multi-byte sequences between ``ingest`` calls,
    so a character split across two network reads is decoded once both halves
    have arrived. Decoding is strict: malformed input raises ``DecodeError``
    instead of being replaced or dropped.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        try:
            decoder_factory = codecs.getincrementaldecoder(encoding)
        except LookupError as e:
            raise DecodeError(f"Unsupported response encoding: {encoding}") from e
        self.encoding = encoding
        self._decoder = decoder_factory(errors="strict")
        self._parts: list[str] = []
        self._length = 0
        self._finished = False

    def __len__(self) -> int:
        return self._length

    @property
    def text(self) -> str:
        """Raw concatenated text decoded so far."""
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    @property
    def finished(self) -> bool:
        return self._finished

    def ingest(self, chunk: bytes) -> "StreamBuffer":
        """Decode ``chunk`` and append it to the buffer."""
        if self._finished:
            raise DecodeError("Cannot ingest data after the stream has finished")
        self._append(self._decode(chunk, final=False))
        return self

    def finish(self) -> "StreamBuffer":
        """Flush the decoder at end of stream.

        Raises DecodeError if the stream ended in the middle of a multi-byte
        sequence.
        """
        if not self._finished:
            self._append(self._decode(b"", final=True))
            self._finished = True
        return self

    def _decode(self, chunk: bytes, final: bool) -> str:
        try:
            return self._decoder.decode(chunk, final=final)
        except UnicodeDecodeError as e:
            logger.error("Failed to decode streamed response as %s: %s", self.encoding, str(e))
            raise DecodeError(f"Malformed {self.encoding} sequence in response body") from e

    def _append(self, decoded: str) -> None:
        if decoded:
            self._parts.append(decoded)
            self._length += len(decoded)


def normalize(buffer: StreamBuffer | str) -> str:
    """Turn accumulated model output into a presentation-ready HTML document.

    Pure function of the whole buffer; recomputing it on the same input gives
    the same output, and feeding the output back in changes nothing.

    1. Strip every ```html opening fence and every closing ``` fence.
    2. Trim surrounding whitespace.
    3. Prepend ``<!DOCTYPE html>`` when the text is non-empty, carries no
       document-type declaration and does not open with an ``<html`` tag.
    """
    text = buffer.text if isinstance(buffer, StreamBuffer) else buffer
    cleaned = _CLOSE_FENCE_RE.sub("", _OPEN_FENCE_RE.sub("", text)).strip()
    if not cleaned:
        return ""
    if not _DOCTYPE_RE.search(cleaned) and not _ROOT_TAG_RE.match(cleaned):
        cleaned = f"{CANONICAL_DOCTYPE}\n{cleaned}"
    return cleaned
