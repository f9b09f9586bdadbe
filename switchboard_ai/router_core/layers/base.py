from __future__ import annotations

"""Layer contract.

A layer is one pipeline stage with two hooks:

- ``tell`` runs on the forward pass and returns a ``ForwardOutcome``:

  - ``proceed``: hand the (possibly modified) request to the next layer,
  - ``reject``: stop the forward pass; the layer supplies the response,
  - ``complete``: the layer answered the request itself (the terminal
    selector layer does this).

- ``respond`` runs on the reverse pass and returns a ``ReverseOutcome``:

  - ``pass_through``: hand the (possibly modified) response back,
  - ``replace``: substitute a different response (e.g. a canned refusal).

Layers must not keep per-request state on ``self``; one layer instance serves
every concurrent traversal.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..schemas.domain import RequestMessage, ResponseMessage, ResponseStatus


class ForwardAction(str, Enum):
    proceed = "proceed"
    reject = "reject"
    complete = "complete"


class ReverseAction(str, Enum):
    pass_through = "pass"
    replace = "replace"


@dataclass(frozen=True)
class ForwardOutcome:
    """Result of ``Layer.tell``."""

    action: ForwardAction
    request: Optional[RequestMessage] = None
    response: Optional[ResponseMessage] = None
    reason: Optional[str] = None

    @classmethod
    def proceed(cls, request: RequestMessage) -> "ForwardOutcome":
        return cls(action=ForwardAction.proceed, request=request)

    @classmethod
    def reject(cls, response: ResponseMessage, reason: Optional[str] = None) -> "ForwardOutcome":
        return cls(action=ForwardAction.reject, response=response, reason=reason)

    @classmethod
    def complete(cls, response: ResponseMessage) -> "ForwardOutcome":
        return cls(action=ForwardAction.complete, response=response)


@dataclass(frozen=True)
class ReverseOutcome:
    """Result of ``Layer.respond``."""

    action: ReverseAction
    response: ResponseMessage
    reason: Optional[str] = None

    @classmethod
    def pass_through(cls, response: ResponseMessage) -> "ReverseOutcome":
        return cls(action=ReverseAction.pass_through, response=response)

    @classmethod
    def replace(cls, response: ResponseMessage, reason: Optional[str] = None) -> "ReverseOutcome":
        return cls(action=ReverseAction.replace, response=response, reason=reason)


class Layer(ABC):
    """Base class for pipeline layers."""

    name: str = "layer"

    @abstractmethod
    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        """Process ``request`` on the forward pass."""

    async def respond(self, response: ResponseMessage, *, request: RequestMessage) -> ReverseOutcome:
        """Process ``response`` on the reverse pass. Pass-through by default."""
        return ReverseOutcome.pass_through(response)

    def rejection(self, request: RequestMessage, reason: str, content: Optional[str] = None) -> ForwardOutcome:
        """Synthesize a ``rejected`` response for ``request`` and reject with it."""
        response = ResponseMessage.for_request(
            request,
            content if content is not None else reason,
            status=ResponseStatus.rejected,
            metadata={"rejected_by": self.name, "reason": reason},
        )
        return ForwardOutcome.reject(response, reason=reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
