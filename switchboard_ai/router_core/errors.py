"""Error types for the routing core.

Defines the exception hierarchy raised by the registry, the capability
selector and pipeline layers. Each error carries the ``ResponseStatus`` value
it maps to when the pipeline handler converts it into a ``ResponseMessage``;
the handler boundary itself never raises.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Optional

if TYPE_CHECKING:
    from .schemas.domain import ResponseMessage


class RouterError(Exception):
    """Base error for all routing core exceptions."""

    status: ClassVar[str] = "error"


class DuplicateIdentifier(RouterError):
    """Raised when a capability identifier is already registered."""

    def __init__(self, capability_id: str) -> None:
        super().__init__(f"capability already registered: '{capability_id}'")
        self.capability_id = capability_id


class InvalidInboundMessage(RouterError):
    """Raised when an interface adapter supplies an incomplete inbound message."""

    def __init__(self, message: str) -> None:
        super().__init__(f"invalid inbound message: {message}")


class LayerRejected(RouterError):
    """Raised by a layer to reject a request on the forward pass.

    The handler recovers this into a ``rejected`` response; when the layer
    supplies ``response`` it is used as-is.
    """

    status: ClassVar[str] = "rejected"

    def __init__(self, reason: str, *, response: Optional["ResponseMessage"] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.response = response


class CapabilityCheckAbstained(RouterError):
    """Raised by ``Capability.check`` when it cannot score a request."""

    def __init__(self, reason: str = "abstained") -> None:
        super().__init__(reason)
        self.reason = reason


class NoCapabilitySelected(RouterError):
    """Raised when neither selection stage produced a capability."""

    status: ClassVar[str] = "no_capability"

    def __init__(self, message: str = "no suitable capability") -> None:
        super().__init__(message)


class ArbiterUnavailable(NoCapabilitySelected):
    """Raised when the fallback arbiter failed or timed out."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"arbiter unavailable: {type(cause).__name__}: {cause}")
        self.cause = cause


class CapabilityExecutionFailed(RouterError):
    """Raised when the selected capability failed during execution."""

    def __init__(self, capability_id: str, cause: BaseException, *, timed_out: bool = False) -> None:
        detail = "timed out" if timed_out else f"{type(cause).__name__}: {cause}"
        super().__init__(f"capability '{capability_id}' failed: {detail}")
        self.capability_id = capability_id
        self.cause = cause
        self.timed_out = timed_out

    @property
    def response_status(self) -> str:
        return "timeout" if self.timed_out else "error"


class PipelineConfigurationError(RouterError):
    """Raised when a layer chain is not a valid pipeline."""


class PipelineContractViolation(RouterError):
    """Raised when a layer breaks the request identity contract."""

    def __init__(self, layer: str, message: str) -> None:
        super().__init__(f"layer '{layer}' violated the pipeline contract: {message}")
        self.layer = layer
