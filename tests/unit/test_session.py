import pytest

from sitesmith.core.exceptions import SessionStateError
from sitesmith.core.exceptions import TransportError
from sitesmith.generation_logic.session import GenerationSession
from sitesmith.models.generation_models import GenerationRequest
from sitesmith.models.generation_models import GenerationResult
from sitesmith.models.generation_models import SessionState


@pytest.fixture
def session():
    return GenerationSession(GenerationRequest(prompt="A bakery landing page"))


def test_new_session_is_idle(session):
    assert session.state is SessionState.IDLE
    assert session.buffer is None
    assert session.result is None


def test_successful_lifecycle(session):
    session.start()
    assert session.in_flight
    buffer = session.open_buffer()
    buffer.ingest(b"<html></html>")

    result = session.complete(GenerationResult(document="<html></html>"))

    assert session.state is SessionState.COMPLETED
    assert session.result is result
    assert session.buffer is None


def test_failed_lifecycle_drops_buffer(session):
    session.start()
    session.open_buffer()
    error = TransportError("connection refused")

    session.fail(error)

    assert session.state is SessionState.FAILED
    assert session.error is error
    assert session.buffer is None


def test_cannot_start_twice(session):
    session.start()
    with pytest.raises(SessionStateError):
        session.start()


@pytest.mark.parametrize("terminal", ["complete", "fail"])
def test_terminal_states_are_final(session, terminal):
    session.start()
    if terminal == "complete":
        session.complete(GenerationResult(document="<html></html>"))
    else:
        session.fail(TransportError("boom"))

    with pytest.raises(SessionStateError):
        session.start()
    with pytest.raises(SessionStateError):
        session.complete(GenerationResult(document="<html></html>"))
    with pytest.raises(SessionStateError):
        session.fail(TransportError("again"))


def test_buffer_requires_in_flight_session(session):
    with pytest.raises(SessionStateError):
        session.open_buffer()


def test_only_one_buffer_per_session(session):
    session.start()
    session.open_buffer()
    with pytest.raises(SessionStateError):
        session.open_buffer()


def test_sessions_never_share_buffers():
    first = GenerationSession(GenerationRequest(prompt="one"))
    second = GenerationSession(GenerationRequest(prompt="two"))
    first.start()
    second.start()
    assert first.open_buffer() is not second.open_buffer()
    assert first.request_id != second.request_id
