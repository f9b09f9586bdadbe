from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import pytest

from switchboard_ai.router_core.capabilities.registry import CapabilityRegistry, default_registry
from switchboard_ai.router_core.errors import CapabilityCheckAbstained
from switchboard_ai.router_core.schemas.domain import RequestMessage, ResponseMessage


class ScriptedCapability:
    """Capability test double with a fixed score and call recording.

    ``score`` may be a float, ``None``, or an exception instance to raise from
    ``check``. ``delay`` sleeps inside ``check`` before answering.
    """

    def __init__(
        self,
        score: Any = 0.0,
        *,
        reply: str = "ok",
        delay: float = 0.0,
        exec_error: Optional[BaseException] = None,
        exec_delay: float = 0.0,
    ) -> None:
        self.score = score
        self.reply = reply
        self.delay = delay
        self.exec_error = exec_error
        self.exec_delay = exec_delay
        self.checked: List[str] = []
        self.executed: List[str] = []
        self.cancelled = False

    async def check(self, request: RequestMessage) -> Optional[float]:
        self.checked.append(request.id)
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if isinstance(self.score, BaseException):
            raise self.score
        return self.score

    async def execute(self, request: RequestMessage) -> ResponseMessage:
        self.executed.append(request.id)
        if self.exec_delay:
            await asyncio.sleep(self.exec_delay)
        if self.exec_error is not None:
            raise self.exec_error
        return ResponseMessage.for_request(request, self.reply)


def abstaining(reason: str = "dependency unavailable") -> ScriptedCapability:
    return ScriptedCapability(CapabilityCheckAbstained(reason))


@pytest.fixture
def registry() -> CapabilityRegistry:
    return CapabilityRegistry()


@pytest.fixture
def request_message() -> RequestMessage:
    return RequestMessage(session_id="session-1", content="hello there")


@pytest.fixture(autouse=True)
def _reset_default_registry():
    default_registry.clear()
    yield
    default_registry.clear()
