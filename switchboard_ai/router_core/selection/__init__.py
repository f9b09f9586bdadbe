"""Capability selection: score stage, arbiter fallback and execution."""

from .arbiter import (
    Arbiter,
    ArbiterChoice,
    ArbitrationCandidate,
    ArbitrationQuery,
    PydanticAIArbiter,
    StaticArbiter,
)
from .selector import STAGE_ARBITER, STAGE_SCORE, CapabilitySelector, SelectionResult

__all__ = [
    "Arbiter",
    "ArbiterChoice",
    "ArbitrationCandidate",
    "ArbitrationQuery",
    "CapabilitySelector",
    "PydanticAIArbiter",
    "STAGE_ARBITER",
    "STAGE_SCORE",
    "SelectionResult",
    "StaticArbiter",
]
