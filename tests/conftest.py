import httpx
import pytest


class TrackingByteStream(httpx.AsyncByteStream):
    """Response body that yields the given chunks one by one and records whether it was closed."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks
        self.closed = False
        self.yielded = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            self.yielded += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def make_client():
    """Build an httpx.AsyncClient whose requests are answered by `handler` and recorded."""

    def _make_client(handler):
        captured: list[httpx.Request] = []

        def _recording_handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_recording_handler))
        client.captured = captured
        return client

    return _make_client


@pytest.fixture
def stream_response():
    """Factory for a 200 text/plain streaming response with a trackable body."""

    def _stream_response(chunks: list[bytes], status_code: int = 200):
        body = TrackingByteStream(chunks)
        response = httpx.Response(
            status_code,
            headers={"content-type": "text/plain; charset=utf-8"},
            stream=body,
        )
        return response, body

    return _stream_response

