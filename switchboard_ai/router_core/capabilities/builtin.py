from __future__ import annotations

import inspect
import logging
import math
import re
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence, Union

from pydantic_ai import Agent

from ..errors import CapabilityCheckAbstained
from ..schemas.domain import MAX_SCORE, MIN_SCORE, MessageContent, RequestMessage, ResponseMessage

logger = logging.getLogger(__name__)

Responder = Callable[[RequestMessage], Union[MessageContent, Awaitable[MessageContent]]]
"""
Responder:
    A sync or async callable producing the response content for a request.
"""

EMBEDDING_CONTEXT_KEY = "embedding"


def echo_responder(request: RequestMessage) -> MessageContent:
    """Default responder: answer with the request content."""
    return request.content


async def _respond(responder: Responder, request: RequestMessage) -> MessageContent:
    result = responder(request)
    if inspect.isawaitable(result):
        result = await result
    return result


class KeywordCapability:
    """
    Simple pattern matcher.

    Scores the fraction of configured patterns found in the request text,
    mapped linearly onto [-1.0, 1.0]: no match scores -1.0, every pattern
    matching scores 1.0. Patterns are regular expressions matched
    case-insensitively; plain keywords work as-is.
    """

    def __init__(self, patterns: Iterable[str], *, responder: Responder = echo_responder) -> None:
        """
        Args:
            patterns: Keywords or regular expressions. Must not be empty.
            responder: Callable producing the response content on execution.
        """
        self._patterns = [re.compile(p, re.IGNORECASE) for p in patterns]
        if not self._patterns:
            raise ValueError("KeywordCapability requires at least one pattern")
        self._responder = responder

    async def check(self, request: RequestMessage) -> float:
        text = request.text
        matched = sum(1 for p in self._patterns if p.search(text))
        return MIN_SCORE + (MAX_SCORE - MIN_SCORE) * matched / len(self._patterns)

    async def execute(self, request: RequestMessage) -> ResponseMessage:
        content = await _respond(self._responder, request)
        return ResponseMessage.for_request(request, content)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors, 0.0 when either is zero."""
    if len(a) != len(b):
        raise ValueError(f"vector size mismatch: {len(a)} != {len(b)}")
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0.0:
        return 0.0
    return max(MIN_SCORE, min(MAX_SCORE, dot / norm))


class EmbeddingCapability:
    """
    ML-scored handler.

    Scores the cosine similarity between the request embedding (placed in
    ``request.context["embedding"]`` by ``EmbeddingLayer``) and a prototype
    vector describing the capability. Abstains when the request carries no
    embedding or its size does not match the prototype.
    """

    def __init__(
        self,
        prototype: Sequence[float],
        *,
        responder: Responder = echo_responder,
        context_key: str = EMBEDDING_CONTEXT_KEY,
    ) -> None:
        if not prototype:
            raise ValueError("EmbeddingCapability requires a non-empty prototype vector")
        self._prototype = [float(v) for v in prototype]
        self._responder = responder
        self._context_key = context_key

    async def check(self, request: RequestMessage) -> float:
        vector = request.context.get(self._context_key)
        if vector is None:
            raise CapabilityCheckAbstained("request has no embedding")
        try:
            return cosine_similarity([float(v) for v in vector], self._prototype)
        except ValueError as e:
            raise CapabilityCheckAbstained(str(e)) from e

    async def execute(self, request: RequestMessage) -> ResponseMessage:
        content = await _respond(self._responder, request)
        return ResponseMessage.for_request(request, content)


class AgentCapability:
    """
    LLM-backed answerer using a Pydantic AI agent.

    The capability does not inspect the request to score it; it reports a
    fixed ``prior`` so that it competes as a generalist. With the default
    prior of 0.0 it is never accepted by score alone and is reached through
    the fallback arbiter.

    Responses depend on the backing model and are not deterministic.
    """

    def __init__(
        self,
        *,
        agent: Any | None = None,
        model: Any | None = None,
        system_prompt: str = "You are a helpful assistant. Answer the user's message concisely.",
        prior: float = 0.0,
    ) -> None:
        """
        Args:
            agent: Pre-built agent exposing ``async run(prompt)``; takes precedence over ``model``.
            model: Pydantic AI model (instance or name such as ``openai:gpt-4o``).
            system_prompt: System prompt used when building the agent from ``model``.
            prior: Fixed score reported by ``check``.
        """
        if agent is None and model is None:
            raise ValueError("AgentCapability requires an agent or a model")
        self._agent = agent
        self._model = model
        self._system_prompt = system_prompt
        self._prior = float(prior)

    def _get_agent(self) -> Any:
        if self._agent is None:
            self._agent = Agent(self._model, output_type=str, system_prompt=self._system_prompt)
        return self._agent

    async def check(self, request: RequestMessage) -> float:
        return self._prior

    async def execute(self, request: RequestMessage) -> ResponseMessage:
        result = await self._get_agent().run(request.text)
        output = result.output
        metadata: dict[str, Any] = {}
        usage = getattr(result, "usage", None)
        if callable(usage):
            try:
                u = usage()
                metadata["usage"] = {
                    "input_tokens": getattr(u, "input_tokens", None),
                    "output_tokens": getattr(u, "output_tokens", None),
                }
            except Exception as e:
                logger.debug(f"Could not read agent usage: {e}")
        content = output if isinstance(output, (str, dict)) else str(output)
        return ResponseMessage.for_request(request, content, metadata=metadata)
