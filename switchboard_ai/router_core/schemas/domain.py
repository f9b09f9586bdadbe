from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..errors import CapabilityExecutionFailed, InvalidInboundMessage, RouterError

MIN_SCORE = -1.0
MAX_SCORE = 1.0
ACCEPT_THRESHOLD = 0.5


class BaseSchema(BaseModel):
    """Strict base for router models: unknown fields are rejected, aliases or names accepted."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResponseStatus(str, Enum):
    ok = "ok"
    rejected = "rejected"
    no_capability = "no_capability"
    error = "error"
    timeout = "timeout"


MessageContent = Union[str, Dict[str, Any]]


class RequestMessage(BaseSchema):
    """One unit of user intent travelling forward through the pipeline.

    ``id``, ``session_id`` and ``created_at`` are frozen: assigning to them
    raises a validation error. ``content`` and ``context`` may be replaced or
    extended by layers.
    """

    id: str = Field(default_factory=lambda: str(uuid4()), frozen=True)
    session_id: str = Field(frozen=True)

    content: MessageContent
    context: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=_utc_now, frozen=True)

    @classmethod
    def from_inbound(cls, payload: Mapping[str, Any]) -> "RequestMessage":
        """
        Build a request from an interface adapter's raw message.

        Args:
            payload: Mapping with at least ``content`` and ``session_id``.
                     ``id`` and ``context`` are honoured when present.

        Raises:
            InvalidInboundMessage: If ``content`` or ``session_id`` is missing, or a
                field does not have the expected shape.
        """
        content = payload.get("content")
        session_id = str(payload.get("session_id") or "").strip()
        if content is None:
            raise InvalidInboundMessage("missing content")
        if not session_id:
            raise InvalidInboundMessage("missing session_id")

        data: Dict[str, Any] = {"session_id": session_id, "content": content}
        if payload.get("id"):
            data["id"] = str(payload["id"])
        try:
            if payload.get("context"):
                data["context"] = dict(payload["context"])
            return cls(**data)
        except (TypeError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            raise InvalidInboundMessage(f"malformed payload: {e}") from e

    @property
    def text(self) -> str:
        """Return the content as text for scoring, embedding and arbitration."""
        if isinstance(self.content, str):
            return self.content
        text = self.content.get("text")
        if isinstance(text, str):
            return text
        return json.dumps(self.content, sort_keys=True, default=str)


class ResponseMessage(BaseSchema):
    """Outcome of handling a request, travelling backward through the pipeline."""

    request_id: str = Field(frozen=True)

    content: MessageContent = ""
    status: ResponseStatus = ResponseStatus.ok
    metadata: Dict[str, Any] = Field(default_factory=dict)

    created_at: datetime = Field(default_factory=_utc_now)

    @classmethod
    def for_request(
        cls,
        request: RequestMessage,
        content: MessageContent = "",
        *,
        status: ResponseStatus = ResponseStatus.ok,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ResponseMessage":
        return cls(request_id=request.id, content=content, status=status, metadata=dict(metadata or {}))

    @classmethod
    def error_for(cls, request_id: str, error: BaseException) -> "ResponseMessage":
        """
        Convert an exception into a terminal response for ``request_id``.

        Router errors map onto their declared status; anything else is an
        ``error`` response. The original error text is kept in metadata.
        """
        if isinstance(error, CapabilityExecutionFailed):
            status = ResponseStatus(error.response_status)
        elif isinstance(error, RouterError):
            status = ResponseStatus(error.status)
        else:
            status = ResponseStatus.error

        metadata: Dict[str, Any] = {"error_type": type(error).__name__, "error": str(error)}
        capability_id = getattr(error, "capability_id", None)
        if capability_id is not None:
            metadata["capability_id"] = capability_id
        return cls(request_id=request_id, content=_ERROR_CONTENT[status], status=status, metadata=metadata)


_ERROR_CONTENT = {
    ResponseStatus.ok: "",
    ResponseStatus.rejected: "The request was rejected.",
    ResponseStatus.no_capability: "No suitable capability is available for this request.",
    ResponseStatus.error: "The request could not be completed.",
    ResponseStatus.timeout: "The request timed out.",
}


@dataclass(frozen=True)
class CandidateScore:
    """Score reported by one capability for one request.

    ``abstained`` distinguishes a capability that could not score (timeout,
    missing dependency, explicit abstention) from one that scored low; both
    rank as ``MIN_SCORE``.
    """

    capability_id: str
    score: float
    abstained: bool = False
    reason: Optional[str] = None
    elapsed_ms: float = 0.0
