from __future__ import annotations

"""LangGraph state for one pipeline traversal.

``_TraversalState`` is the mutable state passed between the handler's graph
nodes. Each traversal gets its own state, so concurrent requests never share
per-request data.
"""

from typing import Any, Dict, List, Optional, Required, Tuple, TypedDict

from ..layers.base import Layer
from ..schemas.domain import RequestMessage, ResponseMessage


class _TraversalState(TypedDict):
    """Mutable LangGraph state for a single traversal.

    Required keys:

    - ``layers``: the layer chain captured when the traversal started.
    - ``request``: the request as last returned by a forward step.
    - ``idx``: index of the next layer to run on the forward pass.
    - ``passed``: stack of layer indices whose ``tell`` ran; the reverse pass
      pops it, so every forward-passed layer is reversed exactly once, in
      reverse order.
    - ``response``: set once a layer rejects or completes; from then on the
      traversal only moves backwards.
    - ``trace``: one entry per executed hook.
    - ``started``: ``time.perf_counter()`` value at traversal start.
    """

    layers: Required[Tuple[Layer, ...]]
    request: Required[RequestMessage]
    idx: Required[int]
    passed: Required[List[int]]
    response: Required[Optional[ResponseMessage]]
    trace: Required[List[Dict[str, Any]]]
    started: Required[float]
