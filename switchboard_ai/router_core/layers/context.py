from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Union

from ..schemas.domain import RequestMessage
from .base import ForwardOutcome, Layer

logger = logging.getLogger(__name__)

Enricher = Callable[[RequestMessage], Union[Any, Awaitable[Any]]]


class ContextEnrichmentLayer(Layer):
    """
    Add context entries to the request.

    Each enricher is a sync or async callable whose return value is stored
    under its key in ``request.context``. Enrichers run in declaration order
    and can read entries produced by earlier ones. A failing enricher is
    logged and skipped unless its key is listed in ``required``, in which case
    the request is rejected.
    """

    def __init__(
        self,
        enrichers: Mapping[str, Enricher],
        *,
        required: Iterable[str] = (),
        name: str = "context",
    ) -> None:
        self.name = name
        self._enrichers = dict(enrichers)
        self._required = frozenset(required)
        unknown = self._required.difference(self._enrichers)
        if unknown:
            raise ValueError(f"required keys without enricher: {sorted(unknown)}")

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        for key, enricher in self._enrichers.items():
            try:
                value = enricher(request)
                if inspect.isawaitable(value):
                    value = await value
            except Exception as e:
                if key in self._required:
                    logger.error(f"Required enricher '{key}' failed: {e} (request={request.id})", exc_info=True)
                    return self.rejection(request, f"context '{key}' unavailable")
                logger.warning(f"Enricher '{key}' failed: {e} (request={request.id})")
                continue
            request.context[key] = value
        return ForwardOutcome.proceed(request)
