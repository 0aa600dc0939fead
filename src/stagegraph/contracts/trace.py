"""Read-only view of the raw execution trace.

The execution engine owns the trace; these types are the snapshot the graph
builder reads. Every type here is frozen: the builder never writes back to
the trace, and synthetic nodes it fabricates are tagged with
NodeOrigin.SYNTHETIC rather than being persisted anywhere.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from stagegraph.contracts.enums import NodeKind, NodeOrigin

# Tag names written by the declarative pipeline front-end onto stage nodes.
SYNTHETIC_STAGE_TAG = "SYNTHETIC_STAGE"
STAGE_STATUS_TAG = "STAGE_STATUS"

SKIPPED_STAGE_STATUSES = frozenset(
    {
        "SKIPPED_FOR_CONDITIONAL",
        "SKIPPED_FOR_FAILURE",
        "SKIPPED_FOR_UNSTABLE",
        "SKIPPED_FOR_RESTART",
    }
)


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Error recorded against an execution node.

    Attributes:
        message: Human-readable error description
        aborted: True when the error was an interruption (user abort, timeout)
            rather than a failure
    """

    message: str
    aborted: bool = False


@dataclass(frozen=True, slots=True)
class ExecutionNode:
    """One raw unit of the trace: a step, or the start/end of a block.

    Markers (the optional "actions" the engine attaches):
        start_time_millis: Timing marker, wall-clock start in epoch millis
        pause_millis: Time spent paused inside this node
        not_executed: Node was skipped by a conditional and never ran
        paused_for_input: Input step currently awaiting a response
        label: Display label (present on stages and parallel branches)
        thread_name: Branch name (present only on parallel-branch starts)
        tags: Front-end tags such as SYNTHETIC_STAGE and STAGE_STATUS
        error: Error raised by this node, if any
        queue_cause: Why an agent allocation is still waiting for an executor
        active: Node has not completed yet
    """

    node_id: str
    display_name: str
    function_name: str
    kind: NodeKind = NodeKind.ATOM
    parent_ids: tuple[str, ...] = ()
    start_id: str | None = None
    start_time_millis: int | None = None
    pause_millis: int = 0
    not_executed: bool = False
    paused_for_input: bool = False
    label: str | None = None
    thread_name: str | None = None
    tags: Mapping[str, str] = field(default_factory=dict, hash=False)
    error: ErrorInfo | None = None
    queue_cause: str | None = None
    active: bool = False
    origin: NodeOrigin = NodeOrigin.REAL

    def __post_init__(self) -> None:
        if self.kind == NodeKind.BLOCK_END and self.start_id is None:
            raise ValueError(f"Block end node '{self.node_id}' must reference its start node")
        if self.kind != NodeKind.BLOCK_END and self.start_id is not None:
            raise ValueError(f"Only block end nodes carry start_id, got kind={self.kind} for '{self.node_id}'")
        if self.pause_millis < 0:
            raise ValueError(f"pause_millis must be >= 0, got {self.pause_millis} for '{self.node_id}'")
        # slots=True + frozen: bypass __setattr__ to freeze the tag mapping
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @property
    def is_executed(self) -> bool:
        return not self.not_executed

    @property
    def is_synthetic(self) -> bool:
        return self.origin == NodeOrigin.SYNTHETIC


class FlowExecution:
    """Snapshot of a run's trace: node store plus the current heads.

    Heads are fixed at construction, so every scan against the same
    FlowExecution reads a consistent view even while the engine appends.
    """

    def __init__(self, nodes: Mapping[str, ExecutionNode], heads: tuple[str, ...]) -> None:
        missing = [head for head in heads if head not in nodes]
        if missing:
            raise ValueError(f"Heads reference unknown nodes: {missing}")
        self._nodes: Mapping[str, ExecutionNode] = MappingProxyType(dict(nodes))
        self._heads = heads

    @property
    def current_heads(self) -> list[ExecutionNode]:
        return [self._nodes[head] for head in self._heads]

    def get_node(self, node_id: str) -> ExecutionNode | None:
        return self._nodes.get(node_id)

    def start_of(self, end_node: ExecutionNode) -> ExecutionNode | None:
        """Return the block start matching a block end, or None for other kinds."""
        if end_node.start_id is None:
            return None
        return self._nodes.get(end_node.start_id)

    def iter_depth_first(self) -> Iterator[ExecutionNode]:
        """Walk from the current heads back through parents, each node once."""
        visited: set[str] = set()
        stack = list(reversed(self._heads))
        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)
            # Parents referencing nodes outside the snapshot are ignored
            node = self._nodes.get(node_id)
            if node is None:
                continue
            yield node
            stack.extend(reversed(node.parent_ids))

    def find_first_match(self, predicate: Callable[[ExecutionNode], bool]) -> ExecutionNode | None:
        for node in self.iter_depth_first():
            if predicate(node):
                return node
        return None

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass(frozen=True, slots=True)
class PipelineRun:
    """A pipeline run as seen by the graph builder.

    Attributes:
        run_id: Engine-assigned run identifier
        name: Pipeline (job) name, used for log context
        execution: Trace snapshot, None when no execution data exists
        building: True while the run is still in progress
        end_time_millis: Wall-clock end of a completed run, if known
    """

    run_id: str
    name: str
    execution: FlowExecution | None = None
    building: bool = False
    end_time_millis: int | None = None
