from __future__ import annotations

import asyncio
from collections import deque
import logging
from typing import Deque, List, Optional, Tuple

from ..interfaces import MemoryStore
from ..schemas.domain import RequestMessage, ResponseMessage
from .base import ForwardOutcome, Layer, ReverseOutcome

logger = logging.getLogger(__name__)


class InMemoryMemoryStore:
    """Process-local ``MemoryStore`` for tests and single-process deployments.

    Pairs are stored as deep copies so that later layers mutating the
    response do not rewrite history. With ``max_pairs`` set, the oldest pairs
    are dropped once the limit is reached; otherwise the store grows for the
    life of the process.
    """

    def __init__(self, max_pairs: Optional[int] = None) -> None:
        if max_pairs is not None and max_pairs < 1:
            raise ValueError("max_pairs must be at least 1")
        self._lock = asyncio.Lock()
        self._pairs: Deque[Tuple[RequestMessage, ResponseMessage]] = deque(maxlen=max_pairs)

    async def append(self, request: RequestMessage, response: ResponseMessage) -> None:
        async with self._lock:
            self._pairs.append((request.model_copy(deep=True), response.model_copy(deep=True)))

    async def history(self, session_id: Optional[str] = None) -> List[Tuple[RequestMessage, ResponseMessage]]:
        """Return stored pairs, optionally only those of one session."""
        async with self._lock:
            if session_id is None:
                return list(self._pairs)
            return [pair for pair in self._pairs if pair[0].session_id == session_id]


class PersistenceLayer(Layer):
    """
    Store every request/response pair on the reverse pass.

    Store failures are logged and never affect the response. Requests that
    were rejected by an outer layer never reach this layer and are therefore
    not stored.
    """

    def __init__(self, store: MemoryStore, *, name: str = "persistence") -> None:
        self.name = name
        self._store = store

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        return ForwardOutcome.proceed(request)

    async def respond(self, response: ResponseMessage, *, request: RequestMessage) -> ReverseOutcome:
        try:
            await self._store.append(request, response)
        except Exception as e:
            logger.error(f"Failed to persist request/response pair: {e} (request={request.id})", exc_info=True)
            response.metadata["persisted"] = False
        else:
            response.metadata["persisted"] = True
        return ReverseOutcome.pass_through(response)
