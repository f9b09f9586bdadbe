"""Capability protocol, registry and built-in capabilities.

 A *capability* is a registered handler that scores its own fitness for a
 request (``check``) and, when selected, produces the response (``execute``).

 - ``CapabilityRegistry`` holds ``CapabilityRecord`` entries in registration
   order and hands the selector an immutable snapshot per request.
 - ``KeywordCapability``, ``EmbeddingCapability`` and ``AgentCapability`` are
   generic building blocks (pattern matching, embedding similarity and an LLM
   generalist).
 """

from .base import Capability, CapabilityRecord
from .builtin import AgentCapability, EmbeddingCapability, KeywordCapability
from .registry import CapabilityRegistry, default_registry

__all__ = [
    "AgentCapability",
    "Capability",
    "CapabilityRecord",
    "CapabilityRegistry",
    "EmbeddingCapability",
    "KeywordCapability",
    "default_registry",
]
