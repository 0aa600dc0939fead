"""PipelineGraphVisitor: builds the stage graph in one pass over the trace.

The scanner walks backward from the current heads, so every stage, branch
and synthetic wrapper is finished in reverse-execution order and pushed to
the front of the graph's ordering. The most recently finished node is kept
as ``next_stage`` and becomes the display child of whatever is finished next.

All traversal state lives in one TraversalState value owned by the visitor
instance; concurrent scans over the same run each build their own visitor.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

import structlog

from stagegraph.contracts.enums import GenericStatus, NodeKind, NodeType
from stagegraph.contracts.errors import ScannerProtocolError
from stagegraph.contracts.protocols import StatusTimingComputer
from stagegraph.contracts.status import RunStatus, TimingInfo
from stagegraph.contracts.trace import ExecutionNode, PipelineRun
from stagegraph.core.config import StageGraphSettings
from stagegraph.core.graph import PipelineGraph, SemanticNode
from stagegraph.engine.chunks import MemoryChunk, StandardChunkVisitor
from stagegraph.engine.clock import DEFAULT_CLOCK, Clock
from stagegraph.engine.node_util import (
    get_cause_of_blockage,
    is_agent_start,
    is_flow_start,
    is_paused_for_input_step,
    is_skipped_stage,
    is_stage,
    is_synthetic_stage,
    node_type_of,
)
from stagegraph.engine.status import TraceStatusComputer
from stagegraph.engine.synthetic import create_parallel_synthetic_node

slog = structlog.get_logger(__name__)


@dataclass
class TraversalState:
    """Everything the visitor carries between scanner callbacks.

    Attributes:
        nested_stages: End nodes of block-scoped stages currently open
        nested_branches: Branch start nodes not yet paired with an end
        branch_end_nodes: Branch end nodes; a running branch reports its head,
            or None when the scanner cannot name one
        parallel_branches: Built branches not yet attached to a stage,
            in display order
        next_stage: Most recently finished node; child of the next one
        first_executed: Earliest executed node seen in the current chunk
        parallel_end: End of the parallel block being scanned, None outside one
        pending_input_steps: Input steps in the current chunk awaiting a response
        agent_node: Last executor-allocation start seen, for blockage causes
    """

    nested_stages: list[ExecutionNode] = field(default_factory=list)
    nested_branches: list[ExecutionNode] = field(default_factory=list)
    branch_end_nodes: list[ExecutionNode | None] = field(default_factory=list)
    parallel_branches: list[SemanticNode] = field(default_factory=list)
    next_stage: SemanticNode | None = None
    first_executed: ExecutionNode | None = None
    parallel_end: ExecutionNode | None = None
    pending_input_steps: deque[ExecutionNode] = field(default_factory=deque)
    agent_node: ExecutionNode | None = None


class PipelineGraphVisitor(StandardChunkVisitor):
    """ChunkVisitor that turns scanner events into a PipelineGraph.

    Example:
        visitor = PipelineGraphVisitor(run)
        scanner.visit_simple_chunks(run.execution, visitor)
        for node in visitor.graph:
            print(node.display_name, node.status)
    """

    def __init__(
        self,
        run: PipelineRun,
        *,
        computer: StatusTimingComputer | None = None,
        clock: Clock | None = None,
        settings: StageGraphSettings | None = None,
    ) -> None:
        """Initialize visitor.

        Args:
            run: Run whose trace is being scanned
            computer: Status/Timing Computer. Defaults to TraceStatusComputer.
            clock: Wall clock for running branches and synthetic stages.
                Defaults to the system clock.
            settings: Builder settings. Defaults to StageGraphSettings().
        """
        super().__init__()
        self._run = run
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._computer: StatusTimingComputer = computer if computer is not None else TraceStatusComputer(self._clock)
        self._settings = settings if settings is not None else StageGraphSettings()
        self._log = slog.bind(run_id=run.run_id, pipeline=run.name)
        self.state = TraversalState()
        self.graph = PipelineGraph()

    # -- chunk events -----------------------------------------------------

    def chunk_start(self, start_node: ExecutionNode, before_block: ExecutionNode | None) -> None:
        super().chunk_start(start_node, before_block)
        self._dump("chunk_start", start_node)

        if is_synthetic_stage(start_node):
            return
        if start_node.is_executed:
            self.state.first_executed = start_node

    def chunk_end(self, end_node: ExecutionNode, after_block: ExecutionNode | None) -> None:
        super().chunk_end(end_node, after_block)
        self._dump("chunk_end", end_node)
        state = self.state

        if is_agent_start(end_node):
            state.agent_node = end_node

        self._capture_orphan_parallel_branches()

        # A block-scoped stage may contain nested stages; track it until its start
        if state.parallel_end is None and end_node.kind == NodeKind.BLOCK_END:
            start = self._start_of(end_node)
            if start is not None and not is_synthetic_stage(start) and is_stage(start):
                # The scanner can deliver chunk_end twice for the same node
                if not state.nested_stages or state.nested_stages[-1].node_id != end_node.node_id:
                    state.nested_stages.append(end_node)

        state.first_executed = None

        # Marker-based (not block-scoped) stages: the end node is part of the contents
        if end_node.kind != NodeKind.BLOCK_END:
            self.atom_node(None, end_node, after_block)

    def handle_chunk_done(self, chunk: MemoryChunk) -> None:
        first_node = chunk.first_node
        if first_node is None:
            return
        self._dump("handle_chunk_done", first_node)
        state = self.state

        if is_synthetic_stage(first_node):
            return

        # Stage inside a parallel branch: handled by the branch logic
        if state.parallel_end is not None:
            return

        if state.nested_stages:
            state.nested_stages.pop()
            if state.nested_stages:
                # Absorbed into the enclosing stage
                return

        if self.graph.is_ordered(first_node.node_id):
            self._log.warning("stage_already_emitted", node_id=first_node.node_id)
            return

        timing = self._chunk_timing(chunk)
        skipped = is_skipped_stage(first_node)
        status = self._chunk_status(chunk, skipped=skipped)

        stage = SemanticNode.wrap(
            first_node,
            node_type_of(first_node),
            status,
            timing,
            cause_of_failure=get_cause_of_blockage(first_node, state.agent_node),
        )
        self.graph.add_node(stage)
        self.graph.push(stage.id)

        if not skipped and state.parallel_branches:
            for branch in state.parallel_branches:
                self.graph.add_parent(branch.id, stage.id)
                self.graph.add_edge(stage.id, branch.id)
        elif state.next_stage is not None:
            self.graph.add_parent(state.next_stage.id, stage.id)
            self.graph.add_edge(stage.id, state.next_stage.id)

        state.parallel_branches.clear()
        state.next_stage = stage

    def reset_chunk(self, chunk: MemoryChunk) -> None:
        super().reset_chunk(chunk)
        self.state.first_executed = None
        self.state.pending_input_steps.clear()

    def _chunk_timing(self, chunk: MemoryChunk) -> TimingInfo:
        first_executed = self.state.first_executed
        if first_executed is None or chunk.last_node is None:
            return TimingInfo()
        return self._computer.compute_timing(
            self._run,
            chunk.pause_time_millis,
            first_executed,
            chunk.last_node,
            chunk.node_after,
        )

    def _chunk_status(self, chunk: MemoryChunk, *, skipped: bool) -> RunStatus:
        first_executed = self.state.first_executed
        if skipped:
            status = RunStatus.skipped()
        elif first_executed is None:
            status = RunStatus.of(GenericStatus.NOT_EXECUTED)
        elif chunk.last_node is not None:
            status = self._computer.compute_status(
                self._run,
                chunk.node_before,
                first_executed,
                chunk.last_node,
                chunk.node_after,
            )
        else:
            status = self._computer.compute_generic_status(first_executed)

        if self.state.pending_input_steps:
            status = RunStatus.paused()
        return status

    # -- parallel events --------------------------------------------------

    def parallel_start(self, parallel_start_node: ExecutionNode, branch_node: ExecutionNode) -> None:
        self._dump("parallel_start", parallel_start_node)
        state = self.state

        if len(state.nested_branches) != len(state.branch_end_nodes):
            self._log.error(
                "parallel_branch_count_mismatch",
                parallel_start=parallel_start_node.node_id,
                nested_branches=len(state.nested_branches),
                branch_ends=len(state.branch_end_nodes),
            )
            if self._settings.strict_scanner:
                raise ScannerProtocolError(
                    f"Parallel block '{parallel_start_node.node_id}' has {len(state.nested_branches)} branch starts "
                    f"but {len(state.branch_end_nodes)} branch ends",
                    nested_branches=len(state.nested_branches),
                    branch_ends=len(state.branch_end_nodes),
                )
            state.nested_branches.clear()
            state.branch_end_nodes.clear()
            state.parallel_end = None
            return

        built: list[SemanticNode] = []
        while state.nested_branches and state.branch_end_nodes:
            branch_start = state.nested_branches.pop()
            branch_end = state.branch_end_nodes.pop()
            status, timing = self._branch_status_and_timing(parallel_start_node, branch_start, branch_end)

            branch = SemanticNode.wrap(branch_start, NodeType.PARALLEL_BRANCH, status, timing)
            self.graph.add_node(branch)
            if state.next_stage is not None:
                self.graph.add_edge(branch.id, state.next_stage.id)
            built.append(branch)

        # Deterministic client layout regardless of engine scheduling order
        state.parallel_branches = sorted([*state.parallel_branches, *built], key=lambda b: b.display_name)
        for branch in reversed(state.parallel_branches):
            if not self.graph.is_ordered(branch.id):
                self.graph.push(branch.id)

        state.parallel_end = None

    def _branch_status_and_timing(
        self,
        parallel_start_node: ExecutionNode,
        branch_start: ExecutionNode,
        branch_end: ExecutionNode | None,
    ) -> tuple[RunStatus, TimingInfo]:
        if branch_end is None:
            now = self._clock.now_millis()
            start_time = branch_start.start_time_millis if branch_start.start_time_millis is not None else now
            timing = TimingInfo(
                total_duration_millis=max(now - start_time, 0),
                pause_duration_millis=self.chunk.pause_time_millis,
                start_time_millis=start_time,
            )
            return RunStatus.running(), timing

        timing = self._computer.compute_timing(
            self._run,
            self.chunk.pause_time_millis,
            branch_start,
            branch_end,
            self.chunk.node_after,
        )
        if branch_end.kind == NodeKind.ATOM:
            if is_paused_for_input_step(branch_end):
                return RunStatus.paused(), timing
            return RunStatus.from_node(branch_end), timing

        status = self._computer.compute_status(
            self._run,
            parallel_start_node,
            branch_start,
            branch_end,
            self.state.parallel_end,
        )
        return status, timing

    def parallel_end(self, parallel_start_node: ExecutionNode, parallel_end_node: ExecutionNode) -> None:
        self._dump("parallel_end", parallel_end_node)
        self._capture_orphan_parallel_branches()
        self.state.parallel_end = parallel_end_node

    def parallel_branch_start(self, parallel_start_node: ExecutionNode, branch_start_node: ExecutionNode) -> None:
        self._dump("parallel_branch_start", branch_start_node)
        self.state.nested_branches.append(branch_start_node)

    def parallel_branch_end(self, parallel_start_node: ExecutionNode, branch_end_node: ExecutionNode | None) -> None:
        self._dump("parallel_branch_end", branch_end_node)
        self.state.branch_end_nodes.append(branch_end_node)

    # -- atoms ------------------------------------------------------------

    def atom_node(self, before: ExecutionNode | None, atom_node: ExecutionNode, after: ExecutionNode | None) -> None:
        self._dump("atom_node", atom_node)

        if is_flow_start(atom_node):
            self._capture_orphan_parallel_branches()
            return

        if atom_node.is_executed:
            self.state.first_executed = atom_node
        self.chunk.pause_time_millis += atom_node.pause_millis

        if is_paused_for_input_step(atom_node):
            self.state.pending_input_steps.append(atom_node)

    # -- helpers ----------------------------------------------------------

    def _capture_orphan_parallel_branches(self) -> None:
        """Wrap branches that no stage claimed in a synthetic stage."""
        state = self.state
        if not state.parallel_branches:
            return
        if state.first_executed is not None and is_stage(state.first_executed):
            return

        synthetic = create_parallel_synthetic_node(
            self.graph,
            state.parallel_branches,
            clock=self._clock,
            stage_name=self._settings.synthetic_stage_name,
        )
        if synthetic is not None:
            self.graph.push(synthetic.id)
            state.parallel_branches.clear()
            state.next_stage = synthetic

    def _start_of(self, end_node: ExecutionNode) -> ExecutionNode | None:
        execution = self._run.execution
        if execution is None:
            return None
        return execution.start_of(end_node)

    def _dump(self, event: str, node: ExecutionNode | None) -> None:
        if not self._settings.node_dump_enabled:
            return
        if node is None:
            self._log.debug("visitor_event", event_name=event, node_id=None)
            return
        self._log.debug(
            "visitor_event",
            event_name=event,
            node_id=node.node_id,
            name=node.display_name,
            function=node.function_name,
            kind=node.kind,
        )
