from __future__ import annotations

"""Two-stage capability selection.

``CapabilitySelector`` picks exactly one capability per request and executes it.

Score stage
-----------

Every capability in the registry snapshot is scored concurrently with
``check``. Each call is bounded by ``check_timeout``; a capability that times
out, raises, returns ``None`` or a non-finite score, or raises
``CapabilityCheckAbstained`` abstains and ranks as ``MIN_SCORE``. Results are
combined in registration order, so the outcome does not depend on which check
finished first: the first-registered capability with the maximum score wins,
and it is accepted outright when that score is strictly above
``accept_threshold``.

Arbiter stage
-------------

Otherwise the non-abstaining candidates (ordered by score, then registration
order) and the request text are sent to the arbiter exactly once, bounded by
``arbiter_timeout``. An arbiter failure raises ``ArbiterUnavailable``; an
identifier outside the candidate list raises ``NoCapabilitySelected``.

Execution
---------

The chosen capability's ``execute`` runs exactly once, bounded by
``execution_timeout``. Any failure is wrapped in ``CapabilityExecutionFailed``.
There is no retry with the next-best capability.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ...core import monitoring
from ...core.config import settings
from ..capabilities.base import CapabilityRecord
from ..capabilities.registry import CapabilityRegistry, default_registry
from ..errors import (
    ArbiterUnavailable,
    CapabilityCheckAbstained,
    CapabilityExecutionFailed,
    NoCapabilitySelected,
)
from ..schemas.domain import MAX_SCORE, MIN_SCORE, CandidateScore, RequestMessage, ResponseMessage
from .arbiter import ArbitrationCandidate, ArbitrationQuery, Arbiter

logger = logging.getLogger(__name__)

STAGE_SCORE = "score"
STAGE_ARBITER = "arbiter"


@dataclass(frozen=True)
class SelectionResult:
    """The capability chosen for a request and how it was chosen."""

    record: CapabilityRecord
    stage: str
    scores: Tuple[CandidateScore, ...]

    def score_map(self) -> Dict[str, float]:
        return {s.capability_id: s.score for s in self.scores}


class CapabilitySelector:
    """Select and execute one capability per request.

    The selector holds no per-request state; one instance serves any number of
    concurrent requests.
    """

    def __init__(
        self,
        registry: Optional[CapabilityRegistry] = None,
        arbiter: Optional[Arbiter] = None,
        *,
        check_timeout: Optional[float] = None,
        execution_timeout: Optional[float] = None,
        arbiter_timeout: Optional[float] = None,
        accept_threshold: Optional[float] = None,
    ) -> None:
        """
        Initialize the selector.

        Args:
            registry: Registry to snapshot per request (defaults to the process-wide registry).
            arbiter: Fallback arbiter. Without one the arbiter stage always fails
                     with ``ArbiterUnavailable``.
            check_timeout: Seconds allowed for each ``check`` call.
            execution_timeout: Seconds allowed for the selected capability's ``execute``.
            arbiter_timeout: Seconds allowed for the arbiter call.
            accept_threshold: Scores strictly above this value skip arbitration.

        Unset timeouts and threshold fall back to the application settings.
        """
        self._registry = registry if registry is not None else default_registry
        self._arbiter = arbiter
        self._check_timeout = check_timeout if check_timeout is not None else settings.check_timeout
        self._execution_timeout = execution_timeout if execution_timeout is not None else settings.execution_timeout
        self._arbiter_timeout = arbiter_timeout if arbiter_timeout is not None else settings.arbiter_timeout
        self._accept_threshold = accept_threshold if accept_threshold is not None else settings.accept_threshold

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry

    @property
    def accept_threshold(self) -> float:
        return self._accept_threshold

    async def score_all(
        self, request: RequestMessage, snapshot: Sequence[CapabilityRecord]
    ) -> Tuple[CandidateScore, ...]:
        """Score every record concurrently; results follow ``snapshot`` order."""
        results = await asyncio.gather(*(self._score_one(request, record) for record in snapshot))
        return tuple(results)

    async def _score_one(self, request: RequestMessage, record: CapabilityRecord) -> CandidateScore:
        loop = asyncio.get_running_loop()
        started = loop.time()

        def _elapsed() -> float:
            return (loop.time() - started) * 1000.0

        try:
            raw = await asyncio.wait_for(record.capability.check(request), timeout=self._check_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Capability '{record.id}' abstained: check exceeded {self._check_timeout}s (request={request.id})"
            )
            return _abstain(record.id, "timeout", _elapsed())
        except CapabilityCheckAbstained as e:
            logger.info(f"Capability '{record.id}' abstained: {e.reason} (request={request.id})")
            return _abstain(record.id, e.reason, _elapsed())
        except Exception as e:
            logger.warning(
                f"Capability '{record.id}' abstained: check raised {type(e).__name__}: {e} (request={request.id})",
                exc_info=True,
            )
            return _abstain(record.id, f"error: {type(e).__name__}", _elapsed())

        if raw is None:
            logger.info(f"Capability '{record.id}' abstained: no score (request={request.id})")
            return _abstain(record.id, "no score", _elapsed())
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or not math.isfinite(raw):
            logger.warning(f"Capability '{record.id}' abstained: invalid score {raw!r} (request={request.id})")
            return _abstain(record.id, "invalid score", _elapsed())

        score = float(raw)
        if score < MIN_SCORE or score > MAX_SCORE:
            logger.warning(f"Capability '{record.id}' returned out-of-range score {score}; clamping")
            score = max(MIN_SCORE, min(MAX_SCORE, score))

        logger.debug(f"Capability '{record.id}' scored {score:.3f} (request={request.id})")
        return CandidateScore(capability_id=record.id, score=score, elapsed_ms=_elapsed())

    async def select(self, request: RequestMessage) -> SelectionResult:
        """
        Choose one capability for ``request``.

        Raises:
            NoCapabilitySelected: Nothing registered, every capability abstained, or
                the arbiter named an unknown capability.
            ArbiterUnavailable: The arbiter failed, timed out or is not configured.
        """
        snapshot = self._registry.list()
        if not snapshot:
            raise NoCapabilitySelected("no capabilities registered")

        scores = await self.score_all(request, snapshot)

        best = 0
        for idx in range(1, len(scores)):
            # Strict comparison keeps the first-registered capability on ties.
            if scores[idx].score > scores[best].score:
                best = idx

        if scores[best].score > self._accept_threshold:
            result = SelectionResult(record=snapshot[best], stage=STAGE_SCORE, scores=scores)
            logger.info(
                f"Selected '{result.record.id}' by score {scores[best].score:.3f} (request={request.id})"
            )
            monitoring.log_selection(request.id, result.record.id, STAGE_SCORE, result.score_map())
            return result

        return await self._arbitrate(request, snapshot, scores)

    async def _arbitrate(
        self,
        request: RequestMessage,
        snapshot: Sequence[CapabilityRecord],
        scores: Tuple[CandidateScore, ...],
    ) -> SelectionResult:
        ranked = sorted(
            ((record, score) for record, score in zip(snapshot, scores) if not score.abstained),
            key=lambda pair: -pair[1].score,
        )
        if not ranked:
            logger.warning(f"Every capability abstained; skipping arbitration (request={request.id})")
            raise NoCapabilitySelected("every capability abstained")

        if self._arbiter is None:
            logger.error(f"No arbiter configured and no score above threshold (request={request.id})")
            raise ArbiterUnavailable(RuntimeError("no arbiter configured"))

        query = ArbitrationQuery(
            content=request.text,
            candidates=tuple(
                ArbitrationCandidate(id=record.id, description=record.description, score=score.score)
                for record, score in ranked
            ),
        )

        try:
            choice = await asyncio.wait_for(self._arbiter.choose(query), timeout=self._arbiter_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Arbiter timed out after {self._arbiter_timeout}s (request={request.id})")
            raise ArbiterUnavailable(e) from e
        except Exception as e:
            logger.error(f"Arbiter failed: {type(e).__name__}: {e} (request={request.id})", exc_info=True)
            raise ArbiterUnavailable(e) from e

        chosen_id = str(choice or "").strip()
        by_id = {record.id: record for record, _ in ranked}
        record = by_id.get(chosen_id)
        if record is None:
            logger.warning(
                f"Arbiter chose unknown capability '{chosen_id}' "
                f"(candidates={list(by_id)}, request={request.id})"
            )
            raise NoCapabilitySelected(f"arbiter chose unknown capability '{chosen_id}'")

        result = SelectionResult(record=record, stage=STAGE_ARBITER, scores=scores)
        logger.info(f"Selected '{record.id}' by arbiter (request={request.id})")
        monitoring.log_selection(request.id, record.id, STAGE_ARBITER, result.score_map())
        return result

    async def execute(self, request: RequestMessage, selection: SelectionResult) -> ResponseMessage:
        """
        Run the selected capability once and annotate its response.

        Raises:
            CapabilityExecutionFailed: The capability raised, timed out, or returned a
                response that does not answer ``request``.
        """
        record = selection.record
        try:
            response = await asyncio.wait_for(
                record.capability.execute(request), timeout=self._execution_timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Capability '{record.id}' exceeded {self._execution_timeout}s (request={request.id})"
            )
            raise CapabilityExecutionFailed(record.id, e, timed_out=True) from e
        except Exception as e:
            logger.error(
                f"Capability '{record.id}' failed: {type(e).__name__}: {e} (request={request.id})", exc_info=True
            )
            raise CapabilityExecutionFailed(record.id, e) from e

        if not isinstance(response, ResponseMessage):
            raise CapabilityExecutionFailed(
                record.id, TypeError(f"expected ResponseMessage, got {type(response).__name__}")
            )
        if response.request_id != request.id:
            raise CapabilityExecutionFailed(
                record.id, ValueError(f"response answers request '{response.request_id}', not '{request.id}'")
            )

        response.metadata["capability_id"] = record.id
        response.metadata["selection_stage"] = selection.stage
        response.metadata["scores"] = selection.score_map()
        abstained = [s.capability_id for s in selection.scores if s.abstained]
        if abstained:
            response.metadata["abstained"] = abstained
        return response

    async def dispatch(self, request: RequestMessage) -> ResponseMessage:
        """Select a capability for ``request`` and execute it."""
        selection = await self.select(request)
        return await self.execute(request, selection)


def _abstain(capability_id: str, reason: str, elapsed_ms: float) -> CandidateScore:
    return CandidateScore(
        capability_id=capability_id, score=MIN_SCORE, abstained=True, reason=reason, elapsed_ms=elapsed_ms
    )
