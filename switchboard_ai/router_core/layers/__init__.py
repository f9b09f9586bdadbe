"""Pipeline layers.

Every layer implements the same two-sided contract (``Layer.tell`` on the
forward pass, ``Layer.respond`` on the reverse pass). The chain handed to the
pipeline handler always ends with ``CapabilitySelectorLayer``.
"""

from .base import ForwardAction, ForwardOutcome, Layer, ReverseAction, ReverseOutcome
from .context import ContextEnrichmentLayer
from .embedding import EmbeddingLayer
from .filtering import ResponseFilterLayer
from .persistence import InMemoryMemoryStore, PersistenceLayer
from .security import AuthenticationLayer, StaticSessionAuthenticator
from .selector_layer import CapabilitySelectorLayer

__all__ = [
    "AuthenticationLayer",
    "CapabilitySelectorLayer",
    "ContextEnrichmentLayer",
    "EmbeddingLayer",
    "ForwardAction",
    "ForwardOutcome",
    "InMemoryMemoryStore",
    "Layer",
    "PersistenceLayer",
    "ResponseFilterLayer",
    "ReverseAction",
    "ReverseOutcome",
    "StaticSessionAuthenticator",
]
