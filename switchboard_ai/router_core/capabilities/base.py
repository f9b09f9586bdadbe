from __future__ import annotations

"""Capability protocol and registration record.

A capability is a unit of work that scores its own fitness for a request and,
when the selector picks it, produces the response.

Capabilities should:

- keep ``check`` free of observable side effects and fast, because it runs
  speculatively against every registered capability for every request,
- raise ``CapabilityCheckAbstained`` (or return ``None``) from ``check`` when a
  dependency needed for scoring is unavailable,
- return a ``ResponseMessage`` bound to the request from ``execute``.

``check`` should be idempotent for the same request; capabilities that depend
on time-varying external state must say so in their docstring.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from ..schemas.domain import RequestMessage, ResponseMessage


class Capability(Protocol):
    """Protocol for capability implementations."""

    async def check(self, request: RequestMessage) -> Optional[float]: ...

    async def execute(self, request: RequestMessage) -> ResponseMessage: ...


@dataclass(frozen=True)
class CapabilityRecord:
    """Registry entry for one capability.

    Attributes
    ----------
    id:
        Identifier, unique within a registry.
    description:
        Human/LLM-readable description used by the fallback arbiter.
    capability:
        The capability instance.
    """

    id: str
    description: str
    capability: Capability

    def __post_init__(self) -> None:
        if not str(self.id).strip():
            raise ValueError("capability id must not be empty")
