"""Shared contracts for cross-boundary data types.

All dataclasses, enums and protocols that cross the boundary between the
execution engine, the graph builder and the presentation layer are defined
here. This package is a LEAF MODULE with no outbound dependencies to
core/engine.

Import patterns:
    from stagegraph.contracts import ExecutionNode, RunStatus, NodeType
"""

from stagegraph.contracts.enums import (
    GenericStatus,
    NodeKind,
    NodeOrigin,
    NodeType,
    RunResult,
    RunState,
)
from stagegraph.contracts.errors import GraphInvariantError, ScannerProtocolError
from stagegraph.contracts.protocols import ChunkVisitor, StatusTimingComputer, TraceScanner
from stagegraph.contracts.status import RunStatus, TimingInfo
from stagegraph.contracts.trace import (
    SKIPPED_STAGE_STATUSES,
    STAGE_STATUS_TAG,
    SYNTHETIC_STAGE_TAG,
    ErrorInfo,
    ExecutionNode,
    FlowExecution,
    PipelineRun,
)

__all__ = [
    "SKIPPED_STAGE_STATUSES",
    "STAGE_STATUS_TAG",
    "SYNTHETIC_STAGE_TAG",
    "ChunkVisitor",
    "ErrorInfo",
    "ExecutionNode",
    "FlowExecution",
    "GenericStatus",
    "GraphInvariantError",
    "NodeKind",
    "NodeOrigin",
    "NodeType",
    "PipelineRun",
    "RunResult",
    "RunState",
    "RunStatus",
    "ScannerProtocolError",
    "StatusTimingComputer",
    "TimingInfo",
    "TraceScanner",
]
