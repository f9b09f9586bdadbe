"""Message value types carried through the pipeline."""

from .domain import (
    ACCEPT_THRESHOLD,
    BaseSchema,
    MAX_SCORE,
    MIN_SCORE,
    CandidateScore,
    RequestMessage,
    ResponseMessage,
    ResponseStatus,
)

__all__ = [
    "ACCEPT_THRESHOLD",
    "MAX_SCORE",
    "MIN_SCORE",
    "BaseSchema",
    "CandidateScore",
    "RequestMessage",
    "ResponseMessage",
    "ResponseStatus",
]
