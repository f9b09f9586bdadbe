"""LangGraph-based pipeline executor.

 The executor takes one ``RequestMessage`` through the ordered layer chain
 (forward), lets the terminal ``CapabilitySelectorLayer`` select and execute a
 capability, then takes the ``ResponseMessage`` back through every layer that
 saw the request (reverse).

 The main entry point is ``PipelineHandler``.
 """

from .handler import PipelineHandler, validate_layers

__all__ = [
    "PipelineHandler",
    "validate_layers",
]
