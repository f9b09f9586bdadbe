from __future__ import annotations

import pytest
from pydantic import ValidationError

from switchboard_ai.router_core.errors import (
    ArbiterUnavailable,
    CapabilityExecutionFailed,
    InvalidInboundMessage,
    LayerRejected,
    NoCapabilitySelected,
)
from switchboard_ai.router_core.schemas.domain import RequestMessage, ResponseMessage, ResponseStatus


def test_request_gets_unique_id_and_timestamp() -> None:
    a = RequestMessage(session_id="s", content="x")
    b = RequestMessage(session_id="s", content="x")
    assert a.id != b.id
    assert a.created_at.tzinfo is not None


def test_request_identity_fields_are_frozen() -> None:
    req = RequestMessage(session_id="s", content="x")
    with pytest.raises(ValidationError):
        req.id = "other"  # type: ignore[misc]
    with pytest.raises(ValidationError):
        req.session_id = "other"  # type: ignore[misc]


def test_request_content_and_context_are_mutable() -> None:
    req = RequestMessage(session_id="s", content="x")
    req.content = "rewritten"
    req.context["claims"] = {"user": "u1"}
    assert req.content == "rewritten"
    assert req.context == {"claims": {"user": "u1"}}


def test_request_text_for_structured_content() -> None:
    assert RequestMessage(session_id="s", content={"text": "hi", "lang": "en"}).text == "hi"
    assert RequestMessage(session_id="s", content={"b": 1, "a": 2}).text == '{"a": 2, "b": 1}'


def test_from_inbound_requires_content_and_session() -> None:
    with pytest.raises(InvalidInboundMessage, match="missing content"):
        RequestMessage.from_inbound({"session_id": "s"})
    with pytest.raises(InvalidInboundMessage, match="missing session_id"):
        RequestMessage.from_inbound({"content": "x", "session_id": "  "})


@pytest.mark.parametrize(
    "payload",
    [
        {"session_id": "s", "content": 5},
        {"session_id": "s", "content": ["a", "b"]},
        {"session_id": "s", "content": "x", "context": [1, 2]},
    ],
)
def test_from_inbound_rejects_malformed_fields(payload: dict) -> None:
    with pytest.raises(InvalidInboundMessage, match="malformed payload"):
        RequestMessage.from_inbound(payload)


def test_from_inbound_keeps_id_and_context() -> None:
    req = RequestMessage.from_inbound({"id": "r1", "session_id": "s", "content": "x", "context": {"k": 1}})
    assert req.id == "r1"
    assert req.context == {"k": 1}


def test_response_request_id_is_frozen() -> None:
    resp = ResponseMessage(request_id="r1", content="x")
    with pytest.raises(ValidationError):
        resp.request_id = "r2"  # type: ignore[misc]
    resp.content = "y"
    resp.metadata["k"] = "v"
    assert resp.content == "y"


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (NoCapabilitySelected(), ResponseStatus.no_capability),
        (ArbiterUnavailable(RuntimeError("down")), ResponseStatus.no_capability),
        (CapabilityExecutionFailed("a", RuntimeError("boom")), ResponseStatus.error),
        (CapabilityExecutionFailed("a", TimeoutError(), timed_out=True), ResponseStatus.timeout),
        (LayerRejected("nope"), ResponseStatus.rejected),
        (ValueError("unexpected"), ResponseStatus.error),
    ],
)
def test_error_for_maps_status(error: BaseException, status: ResponseStatus) -> None:
    resp = ResponseMessage.error_for("r1", error)
    assert resp.request_id == "r1"
    assert resp.status == status
    assert resp.metadata["error_type"] == type(error).__name__


def test_error_for_keeps_capability_id_and_cause() -> None:
    resp = ResponseMessage.error_for("r1", CapabilityExecutionFailed("weather", RuntimeError("api down")))
    assert resp.metadata["capability_id"] == "weather"
    assert "api down" in resp.metadata["error"]
