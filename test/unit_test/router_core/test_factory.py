from __future__ import annotations

import pytest
from conftest import ScriptedCapability

from switchboard_ai.core.config import Settings
from switchboard_ai.router_core.capabilities.registry import CapabilityRegistry
from switchboard_ai.router_core.factory import build_arbiter, build_handler, build_selector
from switchboard_ai.router_core.layers import CapabilitySelectorLayer, PersistenceLayer, InMemoryMemoryStore
from switchboard_ai.router_core.schemas.domain import RequestMessage, ResponseStatus
from switchboard_ai.router_core.selection.arbiter import PydanticAIArbiter, StaticArbiter


def _config(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_build_arbiter_without_model() -> None:
    assert build_arbiter(_config(arbiter_model=None)) is None


def test_build_arbiter_with_model() -> None:
    assert isinstance(build_arbiter(_config(arbiter_model="test")), PydanticAIArbiter)


def test_build_selector_reads_settings(registry: CapabilityRegistry) -> None:
    selector = build_selector(registry=registry, config=_config(accept_threshold=0.8))

    assert selector.registry is registry
    assert selector.accept_threshold == 0.8


@pytest.mark.asyncio
async def test_build_handler_appends_selector_layer(
    registry: CapabilityRegistry, request_message: RequestMessage
) -> None:
    registry.register_capability("A", ScriptedCapability(0.2, reply="via arbiter"))
    store = InMemoryMemoryStore()

    handler = build_handler(
        [PersistenceLayer(store)],
        registry=registry,
        arbiter=StaticArbiter(),
        config=_config(accept_threshold=0.5),
    )
    resp = await handler.handle(request_message)

    assert isinstance(handler.layers[-1], CapabilitySelectorLayer)
    assert resp.status == ResponseStatus.ok
    assert resp.content == "via arbiter"
    assert resp.metadata["persisted"] is True
    assert len(await store.history()) == 1
