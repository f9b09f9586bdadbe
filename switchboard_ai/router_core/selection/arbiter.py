from __future__ import annotations

"""Fallback arbiters.

When no capability scores above the acceptance threshold, the selector asks an
arbiter to pick one capability from the non-abstaining candidates.

- ``Arbiter`` is the protocol the selector depends on.
- ``PydanticAIArbiter`` asks a language model through Pydantic AI for a
  structured ``ArbiterChoice``.
- ``StaticArbiter`` is a deterministic arbiter for tests and for deployments
  that want a fixed default route instead of an LLM call.

Arbiters only return an identifier. Validating that identifier against the
candidate list is the selector's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple

from pydantic import Field
from pydantic_ai import Agent

from ..schemas.domain import BaseSchema

logger = logging.getLogger(__name__)

ARBITER_SYSTEM_PROMPT = (
    "You route user messages to exactly one capability. "
    "Read the message and the candidate capability descriptions, then return "
    "the identifier of the single best candidate. Only return an identifier "
    "that appears in the candidate list."
)


@dataclass(frozen=True)
class ArbitrationCandidate:
    """One candidate offered to the arbiter."""

    id: str
    description: str
    score: float


@dataclass(frozen=True)
class ArbitrationQuery:
    """Input to ``Arbiter.choose``: the request content and candidate list."""

    content: str
    candidates: Tuple[ArbitrationCandidate, ...]

    def candidate_ids(self) -> Tuple[str, ...]:
        return tuple(c.id for c in self.candidates)

    def to_prompt(self) -> str:
        lines = [f"message={self.content}", "", "candidates:"]
        for c in self.candidates:
            lines.append(f"- id={c.id} score={c.score:.2f} description={c.description}")
        return "\n".join(lines)


class ArbiterChoice(BaseSchema):
    """Structured arbiter output."""

    capability_id: str = Field(description="Identifier of the chosen capability")
    reason: Optional[str] = Field(default=None, description="Short justification")


class Arbiter(Protocol):
    """Protocol for fallback arbiters."""

    async def choose(self, query: ArbitrationQuery) -> str: ...


class PydanticAIArbiter:
    """Arbiter backed by a Pydantic AI agent with structured output.

    Given identical inputs the arbiter is only as deterministic as the
    backing model; use ``StaticArbiter`` or an injected agent in tests.
    """

    def __init__(
        self,
        *,
        model: Any | None = None,
        agent: Any | None = None,
        system_prompt: str = ARBITER_SYSTEM_PROMPT,
    ) -> None:
        """
        Args:
            model: Pydantic AI model (instance or name such as ``openai:gpt-4o``).
            agent: Pre-built agent exposing ``async run(prompt)`` whose output is an
                   ``ArbiterChoice``; takes precedence over ``model``.
            system_prompt: System prompt used when building the agent from ``model``.
        """
        if agent is None and model is None:
            raise ValueError("PydanticAIArbiter requires an agent or a model")
        self._agent = agent
        self._model = model
        self._system_prompt = system_prompt

    def _get_agent(self) -> Any:
        if self._agent is None:
            self._agent = Agent(self._model, output_type=ArbiterChoice, system_prompt=self._system_prompt)
        return self._agent

    async def choose(self, query: ArbitrationQuery) -> str:
        result = await self._get_agent().run(query.to_prompt())
        output = result.output
        if isinstance(output, ArbiterChoice):
            choice = output.capability_id
        elif isinstance(output, dict):
            choice = str(output.get("capability_id") or "")
        else:
            choice = str(output)
        choice = choice.strip()
        logger.debug(f"Arbiter chose '{choice}' from {list(query.candidate_ids())}")
        return choice


class StaticArbiter:
    """Deterministic arbiter.

    Returns ``choice`` when configured, otherwise the first candidate (the
    highest-ranked one, since the selector orders candidates by score and
    then registration order). Records every query it receives.
    """

    def __init__(self, choice: Optional[str] = None) -> None:
        self._choice = choice
        self.queries: list[ArbitrationQuery] = []

    async def choose(self, query: ArbitrationQuery) -> str:
        self.queries.append(query)
        if self._choice is not None:
            return self._choice
        if not query.candidates:
            return ""
        return query.candidates[0].id
