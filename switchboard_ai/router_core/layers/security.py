from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from ..interfaces import SessionAuthenticator
from ..schemas.domain import RequestMessage
from .base import ForwardOutcome, Layer

logger = logging.getLogger(__name__)

AUTH_CONTEXT_KEY = "auth"


class StaticSessionAuthenticator:
    """In-memory authenticator over a fixed session → claims mapping."""

    def __init__(self, sessions: Mapping[str, Mapping[str, Any]]) -> None:
        self._sessions: Dict[str, Dict[str, Any]] = {str(k): dict(v) for k, v in sessions.items()}

    async def authenticate(self, session_id: str) -> Optional[Mapping[str, Any]]:
        return self._sessions.get(session_id)


class AuthenticationLayer(Layer):
    """
    Reject requests from unregistered sessions.

    Registered sessions get their claims attached to ``request.context["auth"]``.
    An authenticator failure rejects the request rather than letting it through.
    """

    def __init__(
        self,
        authenticator: SessionAuthenticator,
        *,
        name: str = "authentication",
        rejection_message: str = "Unknown session. Please register before sending messages.",
    ) -> None:
        self.name = name
        self._authenticator = authenticator
        self._rejection_message = rejection_message

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        try:
            claims = await self._authenticator.authenticate(request.session_id)
        except Exception as e:
            logger.error(f"Authenticator failed for session '{request.session_id}': {e}", exc_info=True)
            return self.rejection(request, "authentication unavailable", self._rejection_message)

        if claims is None:
            logger.info(f"Rejected unregistered session '{request.session_id}' (request={request.id})")
            return self.rejection(request, "unregistered session", self._rejection_message)

        request.context[AUTH_CONTEXT_KEY] = dict(claims)
        return ForwardOutcome.proceed(request)
