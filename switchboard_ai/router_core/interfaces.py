from __future__ import annotations

"""Collaborator interface contracts.

The routing core depends on these Protocols instead of concrete embedding,
persistence or authentication backends.

Contract guidelines
-------------------

- All methods are async.
- Failures raise ordinary exceptions; the consuming layer decides whether a
  failure is fatal for the request (embedding/authentication) or only logged
  (persistence).
"""

from typing import Any, Mapping, Optional, Protocol, Sequence

from .schemas.domain import RequestMessage, ResponseMessage


class EmbeddingProvider(Protocol):
    """Turn text into a dense vector."""

    async def embed(self, text: str) -> Sequence[float]:
        """
        Embed a piece of text.

        Args:
            text: The text to vectorize.

        Returns:
            The embedding vector.
        """
        ...


class MemoryStore(Protocol):
    """Append-only store for request/response pairs."""

    async def append(self, request: RequestMessage, response: ResponseMessage) -> None:
        """
        Persist one handled request and the response delivered for it.

        Args:
            request: The request as it left the forward pass.
            response: The response as it reached the persisting layer.
        """
        ...


class SessionAuthenticator(Protocol):
    """Resolve a session identifier to authentication claims."""

    async def authenticate(self, session_id: str) -> Optional[Mapping[str, Any]]:
        """
        Look up a session.

        Args:
            session_id: The originating session identifier.

        Returns:
            The claims for a registered session, or None when unknown.
        """
        ...
