from __future__ import annotations

import logging

from ..capabilities.builtin import EMBEDDING_CONTEXT_KEY
from ..interfaces import EmbeddingProvider
from ..schemas.domain import RequestMessage
from .base import ForwardOutcome, Layer

logger = logging.getLogger(__name__)


class EmbeddingLayer(Layer):
    """
    Attach an embedding of the request text to ``request.context``.

    Provider failures are logged and the request proceeds without an
    embedding (embedding-scored capabilities then abstain), unless the layer
    is ``required``, in which case the request is rejected.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        *,
        required: bool = False,
        context_key: str = EMBEDDING_CONTEXT_KEY,
        name: str = "embedding",
    ) -> None:
        self.name = name
        self._provider = provider
        self._required = required
        self._context_key = context_key

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        try:
            vector = await self._provider.embed(request.text)
        except Exception as e:
            if self._required:
                logger.error(f"Embedding failed: {e} (request={request.id})", exc_info=True)
                return self.rejection(request, "embedding unavailable")
            logger.warning(f"Embedding failed, continuing without it: {e} (request={request.id})")
            return ForwardOutcome.proceed(request)

        request.context[self._context_key] = [float(v) for v in vector]
        return ForwardOutcome.proceed(request)
