"""All status codes, node kinds, and classifications used across subsystem boundaries.

The run-level vocabulary (RunState, RunResult) is what the presentation layer
renders. GenericStatus is the coarser classification produced by a
Status/Timing Computer; it maps onto a (result, state) pair in
stagegraph.contracts.status.
"""

from enum import StrEnum


class RunState(StrEnum):
    """Lifecycle state of a stage, branch or step."""

    QUEUED = "queued"
    RUNNING = "running"
    PAUSED = "paused"
    SKIPPED = "skipped"
    FINISHED = "finished"
    NOT_BUILT = "not_built"


class RunResult(StrEnum):
    """Outcome of a stage, branch or step.

    UNKNOWN is used while work is still in flight or blocked on input.
    """

    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    UNKNOWN = "unknown"
    ABORTED = "aborted"
    NOT_BUILT = "not_built"


class GenericStatus(StrEnum):
    """Coarse classification of a contiguous run of execution nodes."""

    NOT_EXECUTED = "not_executed"
    SUCCESS = "success"
    UNSTABLE = "unstable"
    IN_PROGRESS = "in_progress"
    FAILURE = "failure"
    ABORTED = "aborted"
    PAUSED_PENDING_INPUT = "paused_pending_input"
    QUEUED = "queued"


class NodeType(StrEnum):
    """Kind of semantic node shown in the display graph."""

    STAGE = "stage"
    PARALLEL_BRANCH = "parallel_branch"
    STEP = "step"


class NodeKind(StrEnum):
    """Structural kind of a raw execution node in the trace."""

    FLOW_START = "flow_start"
    BLOCK_START = "block_start"
    BLOCK_END = "block_end"
    ATOM = "atom"


class NodeOrigin(StrEnum):
    """Where an execution node came from.

    SYNTHETIC nodes are fabricated by the graph builder (parallel wrappers)
    and never exist in the engine's trace.
    """

    REAL = "real"
    SYNTHETIC = "synthetic"
