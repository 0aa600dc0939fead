"""Graph-building engine: visitors, synthetic stages, and the builder facade."""

from stagegraph.engine.builder import PipelineNodeGraphBuilder
from stagegraph.engine.chunks import MemoryChunk, StandardChunkVisitor
from stagegraph.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from stagegraph.engine.status import TraceStatusComputer
from stagegraph.engine.steps import PipelineStepVisitor
from stagegraph.engine.visitor import PipelineGraphVisitor, TraversalState

__all__ = [
    "DEFAULT_CLOCK",
    "Clock",
    "MemoryChunk",
    "MockClock",
    "PipelineGraphVisitor",
    "PipelineNodeGraphBuilder",
    "PipelineStepVisitor",
    "StandardChunkVisitor",
    "SystemClock",
    "TraceStatusComputer",
    "TraversalState",
]
