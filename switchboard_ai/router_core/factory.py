from __future__ import annotations

"""Convenience factories for wiring the routing core.

This module contains small helpers to build a selector from settings and to
assemble a ``PipelineHandler`` from outer layers plus the terminal selector
layer.

The intent is to keep application wiring and tests concise, while still
allowing deployments to provide their own registry, arbiter and layers.
"""

from typing import Iterable, Optional

from ..core.config import Settings, settings as default_settings
from .capabilities.registry import CapabilityRegistry
from .layers.base import Layer
from .layers.selector_layer import CapabilitySelectorLayer
from .pipeline.handler import PipelineHandler
from .selection.arbiter import Arbiter, PydanticAIArbiter
from .selection.selector import CapabilitySelector


def build_arbiter(config: Optional[Settings] = None) -> Optional[Arbiter]:
    """Build the LLM arbiter configured by ``SWITCHBOARD_AI_ARBITER_MODEL``, if any."""
    cfg = config or default_settings
    model = cfg.selection.arbiter_model
    if not model:
        return None
    return PydanticAIArbiter(model=model)


def build_selector(
    *,
    registry: Optional[CapabilityRegistry] = None,
    arbiter: Optional[Arbiter] = None,
    config: Optional[Settings] = None,
) -> CapabilitySelector:
    """Construct a ``CapabilitySelector`` with timeouts and threshold from settings."""
    cfg = config or default_settings
    timeouts = cfg.timeouts
    return CapabilitySelector(
        registry,
        arbiter if arbiter is not None else build_arbiter(cfg),
        check_timeout=timeouts.check_seconds,
        execution_timeout=timeouts.execution_seconds,
        arbiter_timeout=timeouts.arbiter_seconds,
        accept_threshold=cfg.selection.accept_threshold,
    )


def build_handler(
    layers: Iterable[Layer] = (),
    *,
    registry: Optional[CapabilityRegistry] = None,
    arbiter: Optional[Arbiter] = None,
    selector: Optional[CapabilitySelector] = None,
    config: Optional[Settings] = None,
) -> PipelineHandler:
    """
    Assemble a ``PipelineHandler``.

    Args:
        layers: Outer layers in forward order; the selector layer is appended.
        registry: Capability registry (defaults to the process-wide registry).
        arbiter: Fallback arbiter (defaults to the configured LLM arbiter, if any).
        selector: Pre-built selector; overrides ``registry``, ``arbiter`` and ``config``.
        config: Settings to read timeouts and threshold from.
    """
    sel = selector if selector is not None else build_selector(registry=registry, arbiter=arbiter, config=config)
    return PipelineHandler([*layers, CapabilitySelectorLayer(sel)])
