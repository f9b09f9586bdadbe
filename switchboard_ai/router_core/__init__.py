"""Request-routing core: layers, capability registry and selection.

Design overview
---------------

A request travels through an ordered chain of layers and back:

- ``RequestMessage`` flows forward through each ``Layer.tell``. Any layer may
  reject, which turns the traversal around at that layer.
- The terminal ``CapabilitySelectorLayer`` asks ``CapabilitySelector`` to pick
  one registered capability, first by score (any score above the acceptance
  threshold wins, ties going to the first-registered capability), otherwise
  through a fallback arbiter, and executes it once.
- The ``ResponseMessage`` flows back through ``Layer.respond`` of every layer
  that saw the request, in reverse order.

Typical usage
-------------

1. Register capabilities in a ``CapabilityRegistry``.
2. Build a handler with ``factory.build_handler(layers, registry=..., arbiter=...)``.
3. ``await handler.handle(request)`` always resolves to a ``ResponseMessage``.
"""

from .capabilities import CapabilityRecord, CapabilityRegistry, default_registry
from .errors import (
    ArbiterUnavailable,
    CapabilityCheckAbstained,
    CapabilityExecutionFailed,
    DuplicateIdentifier,
    LayerRejected,
    NoCapabilitySelected,
    RouterError,
)
from .factory import build_handler, build_selector
from .layers import CapabilitySelectorLayer, ForwardOutcome, Layer, ReverseOutcome
from .pipeline import PipelineHandler
from .schemas.domain import RequestMessage, ResponseMessage, ResponseStatus
from .selection import CapabilitySelector

__all__ = [
    "ArbiterUnavailable",
    "CapabilityCheckAbstained",
    "CapabilityExecutionFailed",
    "CapabilityRecord",
    "CapabilityRegistry",
    "CapabilitySelector",
    "CapabilitySelectorLayer",
    "DuplicateIdentifier",
    "ForwardOutcome",
    "Layer",
    "LayerRejected",
    "NoCapabilitySelected",
    "PipelineHandler",
    "RequestMessage",
    "ResponseMessage",
    "ResponseStatus",
    "ReverseOutcome",
    "RouterError",
    "build_handler",
    "build_selector",
    "default_registry",
]
