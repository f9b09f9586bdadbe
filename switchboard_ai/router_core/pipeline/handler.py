from __future__ import annotations

"""LangGraph pipeline executor.

``PipelineHandler`` drives one request through the ordered layer chain and
back.

Execution model
---------------

- The handler runs a LangGraph state machine over a per-traversal
  ``_TraversalState``.
- The ``forward`` node runs ``tell`` on the layer at ``idx``, pushes ``idx``
  onto the ``passed`` stack and advances the cursor while layers proceed.
- As soon as a layer rejects or completes (the terminal
  ``CapabilitySelectorLayer`` completes), the graph switches to the
  ``reverse`` node, which pops ``passed`` and runs ``respond`` on each layer
  until the stack is empty.
- The ``finish`` node stamps timing and trace metadata on the response.

Guarantees
----------

- ``handle`` returns exactly one ``ResponseMessage`` whose ``request_id`` is
  the request's id, and never raises for request-level failures.
- Every layer whose ``tell`` ran gets its ``respond`` called, in reverse
  order, including on early rejection and when ``tell`` raised. Layers past
  the rejecting one are never called.
- Exceptions raised by hooks are converted into error responses before the
  reverse pass, so reverse-pass layers always see a response.
"""

import logging
import time
from typing import Any, Dict, Iterable, Mapping, Tuple
from uuid import uuid4

from langgraph.graph import END, StateGraph

from ...core import monitoring
from ..errors import InvalidInboundMessage, LayerRejected, PipelineConfigurationError, PipelineContractViolation
from ..layers.base import ForwardAction, ForwardOutcome, Layer, ReverseOutcome
from ..layers.selector_layer import CapabilitySelectorLayer
from ..schemas.domain import RequestMessage, ResponseMessage, ResponseStatus
from .models import _TraversalState

logger = logging.getLogger(__name__)

PHASE_FORWARD = "forward"
PHASE_REVERSE = "reverse"


def validate_layers(layers: Iterable[Layer]) -> Tuple[Layer, ...]:
    """
    Validate a layer chain and return it as a tuple.

    Raises:
        PipelineConfigurationError: If the chain is empty, contains a non-layer,
            has duplicate layer names, or does not end with exactly one
            ``CapabilitySelectorLayer``.
    """
    chain = tuple(layers)
    if not chain:
        raise PipelineConfigurationError("pipeline requires at least one layer")
    for layer in chain:
        if not isinstance(layer, Layer):
            raise PipelineConfigurationError(f"not a Layer: {layer!r}")
    if not isinstance(chain[-1], CapabilitySelectorLayer):
        raise PipelineConfigurationError("the last layer must be a CapabilitySelectorLayer")
    if any(isinstance(layer, CapabilitySelectorLayer) for layer in chain[:-1]):
        raise PipelineConfigurationError("CapabilitySelectorLayer must only appear last")
    names = [layer.name for layer in chain]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise PipelineConfigurationError(f"duplicate layer names: {duplicates}")
    return chain


class PipelineHandler:
    """Drive requests through a layer chain, forward then reverse.

    The chain is fixed at construction and can be swapped with ``reload``.
    Traversals capture the chain when they start, so a reload never affects
    requests already in flight.
    """

    def __init__(self, layers: Iterable[Layer]) -> None:
        """
        Initialize the handler.

        Args:
            layers: Ordered layer chain ending with a ``CapabilitySelectorLayer``.
        """
        self._layers = validate_layers(layers)
        self._graph = self._build_graph()

    @property
    def layers(self) -> Tuple[Layer, ...]:
        return self._layers

    def reload(self, layers: Iterable[Layer]) -> None:
        """Validate and atomically replace the layer chain."""
        chain = validate_layers(layers)
        self._layers = chain
        logger.info(f"Pipeline reloaded with layers: {[layer.name for layer in chain]}")

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_TraversalState)
        g.add_node("forward", self._node_forward)
        g.add_node("reverse", self._node_reverse)
        g.add_node("finish", self._node_finish)

        g.set_entry_point("forward")
        g.add_conditional_edges(
            "forward",
            self._route_after_forward,
            {
                "forward": "forward",
                "reverse": "reverse",
            },
        )
        g.add_conditional_edges(
            "reverse",
            self._route_after_reverse,
            {
                "reverse": "reverse",
                "finish": "finish",
            },
        )
        g.add_edge("finish", END)
        return g.compile()

    async def handle(self, request: RequestMessage) -> ResponseMessage:
        """Run ``request`` through the pipeline and return its response."""
        layers = self._layers
        state: _TraversalState = {
            "layers": layers,
            "request": request,
            "idx": 0,
            "passed": [],
            "response": None,
            "trace": [],
            "started": time.perf_counter(),
        }
        logger.debug(f"Handling request {request.id} from session {request.session_id}")

        response = None
        try:
            final = await self._graph.ainvoke(state, config={"recursion_limit": 2 * len(layers) + 10})
            response = final.get("response")
        except Exception as e:
            logger.error(f"Pipeline traversal aborted: {e} (request={request.id})", exc_info=True)
            response = ResponseMessage.error_for(request.id, e)

        if response is None or response.request_id != request.id:
            response = ResponseMessage.error_for(
                request.id, PipelineContractViolation("pipeline", "traversal produced no response for the request")
            )
        return response

    async def handle_inbound(self, payload: Mapping[str, Any]) -> ResponseMessage:
        """
        Build a request from an interface adapter payload and handle it.

        Payloads missing ``content`` or ``session_id`` yield an error response
        without entering the pipeline.
        """
        try:
            request = RequestMessage.from_inbound(payload)
        except InvalidInboundMessage as e:
            logger.warning(f"Rejected inbound message: {e}")
            return ResponseMessage.error_for(str(payload.get("id") or uuid4()), e)
        return await self.handle(request)

    async def _node_forward(self, state: _TraversalState) -> _TraversalState:
        """Run ``tell`` on the layer at the cursor."""
        layers = state["layers"]
        idx = state["idx"]
        layer = layers[idx]
        request = state["request"]
        state["passed"].append(idx)

        started = time.perf_counter()
        try:
            outcome = await layer.tell(request)
            action, response, next_request = self._interpret_forward(layer, request, outcome)
        except LayerRejected as e:
            action = ForwardAction.reject
            next_request = request
            response = self._rejection_response(layer, request, e)
        except Exception as e:
            logger.error(f"Layer '{layer.name}' failed on forward pass: {e} (request={request.id})", exc_info=True)
            action = None
            next_request = request
            response = ResponseMessage.error_for(request.id, e)
            response.metadata["failed_layer"] = layer.name

        state["trace"].append(_trace_entry(layer, PHASE_FORWARD, action.value if action else "error", started))
        state["request"] = next_request

        if response is not None:
            if action == ForwardAction.reject:
                logger.info(f"Layer '{layer.name}' rejected request {request.id}")
            state["response"] = response
            return state

        if idx + 1 >= len(layers):
            violation = PipelineContractViolation(layer.name, "terminal layer did not produce a response")
            logger.error(str(violation))
            state["response"] = ResponseMessage.error_for(request.id, violation)
            return state

        state["idx"] = idx + 1
        return state

    def _interpret_forward(
        self, layer: Layer, request: RequestMessage, outcome: Any
    ) -> Tuple[ForwardAction, ResponseMessage | None, RequestMessage]:
        if not isinstance(outcome, ForwardOutcome):
            raise PipelineContractViolation(layer.name, f"tell returned {type(outcome).__name__}")

        if outcome.action == ForwardAction.proceed:
            forwarded = outcome.request
            if not isinstance(forwarded, RequestMessage):
                raise PipelineContractViolation(layer.name, "proceed without a request")
            if forwarded.id != request.id or forwarded.session_id != request.session_id:
                raise PipelineContractViolation(layer.name, "request id or session changed")
            return outcome.action, None, forwarded

        response = outcome.response
        if not isinstance(response, ResponseMessage):
            raise PipelineContractViolation(layer.name, f"{outcome.action.value} without a response")
        if response.request_id != request.id:
            raise PipelineContractViolation(layer.name, "response answers a different request")
        return outcome.action, response, request

    def _rejection_response(self, layer: Layer, request: RequestMessage, error: LayerRejected) -> ResponseMessage:
        if error.response is not None and error.response.request_id == request.id:
            return error.response
        return ResponseMessage.for_request(
            request,
            error.reason,
            status=ResponseStatus.rejected,
            metadata={"rejected_by": layer.name, "reason": error.reason, "error_type": type(error).__name__},
        )

    async def _node_reverse(self, state: _TraversalState) -> _TraversalState:
        """Run ``respond`` on the most recent forward-passed layer."""
        idx = state["passed"].pop()
        layer = state["layers"][idx]
        request = state["request"]
        response = state["response"]

        started = time.perf_counter()
        label = "error"
        try:
            outcome = await layer.respond(response, request=request)
            if not isinstance(outcome, ReverseOutcome) or not isinstance(outcome.response, ResponseMessage):
                raise PipelineContractViolation(layer.name, f"respond returned {type(outcome).__name__}")
            if outcome.response.request_id != request.id:
                raise PipelineContractViolation(layer.name, "response answers a different request")
            label = outcome.action.value
            if outcome.reason:
                logger.info(f"Layer '{layer.name}' replaced response: {outcome.reason} (request={request.id})")
            state["response"] = outcome.response
        except Exception as e:
            # The response from the previous step is kept; reverse hooks cannot abort delivery.
            logger.error(f"Layer '{layer.name}' failed on reverse pass: {e} (request={request.id})", exc_info=True)

        state["trace"].append(_trace_entry(layer, PHASE_REVERSE, label, started))
        return state

    async def _node_finish(self, state: _TraversalState) -> _TraversalState:
        """Stamp trace and timing metadata on the final response."""
        response = state["response"]
        request = state["request"]
        elapsed_ms = (time.perf_counter() - state["started"]) * 1000.0
        response.metadata["trace"] = list(state["trace"])
        response.metadata["elapsed_ms"] = elapsed_ms

        status = response.status.value if isinstance(response.status, ResponseStatus) else str(response.status)
        logger.info(f"Request {request.id} handled: status={status}, elapsed_ms={elapsed_ms:.2f}")
        monitoring.log_request_handled(
            request.id, request.session_id, status, response.metadata.get("capability_id"), elapsed_ms
        )
        if response.status != ResponseStatus.ok:
            monitoring.log_error(
                str(response.metadata.get("error_type") or status),
                str(response.metadata.get("error") or response.metadata.get("reason") or ""),
                {"request_id": request.id},
            )
        return state

    def _route_after_forward(self, state: _TraversalState) -> str:
        """Keep moving forward until a layer produced a response."""
        if state.get("response") is not None:
            return "reverse"
        return "forward"

    def _route_after_reverse(self, state: _TraversalState) -> str:
        """Keep reversing until every forward-passed layer has responded."""
        if state.get("passed"):
            return "reverse"
        return "finish"


def _trace_entry(layer: Layer, phase: str, outcome: str, started: float) -> Dict[str, Any]:
    return {
        "layer": layer.name,
        "phase": phase,
        "outcome": outcome,
        "elapsed_ms": (time.perf_counter() - started) * 1000.0,
    }
