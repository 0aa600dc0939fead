"""Protocols for the collaborators the graph builder depends on.

The trace scanner and the status/timing computer belong to the execution
engine. The builder only consumes them through these protocols; they're
used for type checking, not runtime enforcement.

Scanner event order:
    The scanner walks from the current heads back to the flow start and
    invokes ChunkVisitor callbacks in that (reverse-execution) order. For a
    block-scoped stage that contains a parallel construct the sequence is::

        chunk_end(stage end)
          parallel_end(parallel start, parallel end)
            parallel_branch_end(parallel start, branch end)
              atom_node(...)                      # branch contents
            parallel_branch_start(parallel start, branch start)
            ...                                   # remaining branches
          parallel_start(parallel start, first branch start)
        chunk_start(stage start)

    Chunk and parallel events always nest correctly and are delivered in a
    single, non-reentrant pass.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from stagegraph.contracts.status import RunStatus, TimingInfo
    from stagegraph.contracts.trace import ExecutionNode, FlowExecution, PipelineRun


class ChunkVisitor(Protocol):
    """Callbacks invoked by a TraceScanner during one linear pass."""

    def chunk_start(self, start_node: "ExecutionNode", before_block: "ExecutionNode | None") -> None:
        """Called at the first node of a stage-like chunk (seen last)."""
        ...

    def chunk_end(self, end_node: "ExecutionNode", after_block: "ExecutionNode | None") -> None:
        """Called at the last node of a stage-like chunk (seen first)."""
        ...

    def parallel_start(self, parallel_start_node: "ExecutionNode", branch_node: "ExecutionNode") -> None:
        """Called once all branches of a parallel construct have been walked."""
        ...

    def parallel_end(self, parallel_start_node: "ExecutionNode", parallel_end_node: "ExecutionNode") -> None:
        """Called when the scanner enters a parallel construct from its end."""
        ...

    def parallel_branch_start(self, parallel_start_node: "ExecutionNode", branch_start_node: "ExecutionNode") -> None:
        """Called at the start node of one branch."""
        ...

    def parallel_branch_end(
        self,
        parallel_start_node: "ExecutionNode",
        branch_end_node: "ExecutionNode | None",
    ) -> None:
        """Called at the end node of one branch.

        A branch that still runs reports its head (newest node) instead;
        None when the scanner has no head for it.
        """
        ...

    def atom_node(
        self,
        before: "ExecutionNode | None",
        atom_node: "ExecutionNode",
        after: "ExecutionNode | None",
    ) -> None:
        """Called for every node that is not a chunk or parallel boundary."""
        ...


class TraceScanner(Protocol):
    """Walks an execution trace and drives a ChunkVisitor."""

    def visit_simple_chunks(self, execution: "FlowExecution", visitor: ChunkVisitor) -> None:
        """Scan execution from its current heads, invoking visitor callbacks."""
        ...


class StatusTimingComputer(Protocol):
    """Computes status and timing for a contiguous run of execution nodes.

    before/after are the nodes immediately outside the run (None at the
    edges of the trace or while the run is still open).
    """

    def compute_status(
        self,
        run: "PipelineRun",
        before: "ExecutionNode | None",
        first: "ExecutionNode",
        last: "ExecutionNode",
        after: "ExecutionNode | None",
    ) -> "RunStatus":
        """Return the status of the nodes between first and last inclusive."""
        ...

    def compute_timing(
        self,
        run: "PipelineRun",
        pause_millis: int,
        first: "ExecutionNode",
        last: "ExecutionNode",
        after: "ExecutionNode | None",
    ) -> "TimingInfo":
        """Return elapsed/paused/start time of the nodes between first and last."""
        ...

    def compute_generic_status(self, first: "ExecutionNode") -> "RunStatus":
        """Return the status of a single node whose chunk has not completed."""
        ...
