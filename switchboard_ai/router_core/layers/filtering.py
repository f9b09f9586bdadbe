"""Rule-based response filter.

Purpose:
    Deterministic post-generation check that redacts credentials from
    responses and suppresses responses containing blocked content, replacing
    them with a canned refusal.

Validation model:
    - Secret redaction uses regular expressions for common API token shapes.
    - Blocked content is matched case-insensitively as regular expressions.
    - Optionally the same blocked patterns screen requests on the forward pass.

Bypass risk:
    Pattern matching can be bypassed by obfuscation or paraphrase; this layer
    is one control among several, not a guarantee.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Iterable, Optional

from ...core.config import settings
from ..schemas.domain import MessageContent, RequestMessage, ResponseMessage, ResponseStatus
from .base import ForwardOutcome, Layer, ReverseOutcome

logger = logging.getLogger(__name__)

SECRET_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9]{10,}"),
    re.compile(r"ghp_[A-Za-z0-9]{10,}"),
    re.compile(r"xoxb-[A-Za-z0-9-]{10,}"),
)

REDACTED = "<redacted>"


def _as_text(content: MessageContent) -> str:
    if isinstance(content, str):
        return content
    return json.dumps(content, sort_keys=True, default=str)


class ResponseFilterLayer(Layer):
    """Redact secrets and suppress blocked responses on the reverse pass."""

    def __init__(
        self,
        blocked_patterns: Iterable[str] = (),
        *,
        refusal_message: Optional[str] = None,
        redact_secrets: bool = True,
        screen_requests: bool = False,
        name: str = "response_filter",
    ) -> None:
        """
        Args:
            blocked_patterns: Regular expressions whose presence suppresses a response.
            refusal_message: Replacement content (defaults to the configured refusal message).
            redact_secrets: Replace API-token-shaped strings in text responses.
            screen_requests: Also reject requests matching a blocked pattern on the forward pass.
            name: Layer name.
        """
        self.name = name
        self._blocked = [re.compile(p, re.IGNORECASE) for p in blocked_patterns]
        self._refusal = refusal_message if refusal_message is not None else settings.refusal_message
        self._redact_secrets = redact_secrets
        self._screen_requests = screen_requests

    def _matches_blocked(self, text: str) -> Optional[str]:
        for pattern in self._blocked:
            if pattern.search(text):
                return pattern.pattern
        return None

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        if self._screen_requests:
            hit = self._matches_blocked(request.text)
            if hit is not None:
                logger.info(f"Request blocked by pattern '{hit}' (request={request.id})")
                return self.rejection(request, "blocked content", self._refusal)
        return ForwardOutcome.proceed(request)

    async def respond(self, response: ResponseMessage, *, request: RequestMessage) -> ReverseOutcome:
        hit = self._matches_blocked(_as_text(response.content))
        if hit is not None:
            logger.info(f"Response suppressed by pattern '{hit}' (request={request.id})")
            replacement = ResponseMessage(
                request_id=response.request_id,
                content=self._refusal,
                status=ResponseStatus.rejected,
                metadata={**response.metadata, "filtered_by": self.name},
            )
            return ReverseOutcome.replace(replacement, reason="blocked content")

        if self._redact_secrets and isinstance(response.content, str):
            redacted = response.content
            for pattern in SECRET_PATTERNS:
                redacted = pattern.sub(REDACTED, redacted)
            if redacted != response.content:
                logger.info(f"Redacted secrets from response (request={request.id})")
                response.content = redacted
                response.metadata["redacted"] = True
        return ReverseOutcome.pass_through(response)
