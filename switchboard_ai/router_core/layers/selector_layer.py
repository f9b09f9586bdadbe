from __future__ import annotations

import logging

from ..errors import RouterError
from ..schemas.domain import RequestMessage, ResponseMessage
from ..selection.selector import CapabilitySelector
from .base import ForwardOutcome, Layer

logger = logging.getLogger(__name__)


class CapabilitySelectorLayer(Layer):
    """
    Terminal layer: select a capability and execute it.

    Selection and execution failures (``NoCapabilitySelected``,
    ``ArbiterUnavailable``, ``CapabilityExecutionFailed``) are converted into
    error responses here so the reverse pass starts from this layer with a
    response in hand. The reverse hook is the default pass-through.
    """

    def __init__(self, selector: CapabilitySelector, *, name: str = "capability_selector") -> None:
        self.name = name
        self._selector = selector

    @property
    def selector(self) -> CapabilitySelector:
        return self._selector

    async def tell(self, request: RequestMessage) -> ForwardOutcome:
        try:
            response = await self._selector.dispatch(request)
        except RouterError as e:
            logger.warning(f"Routing failed: {type(e).__name__}: {e} (request={request.id})")
            response = ResponseMessage.error_for(request.id, e)
        return ForwardOutcome.complete(response)
