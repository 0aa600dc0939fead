"""PipelineStepVisitor: the atomic steps inside a stage or branch.

A narrower scan than the graph visitor. Every block the scanner reports
(stage chunk or parallel branch) opens a segment when its end is seen and
closes it when its start is seen; atoms land in the innermost open segment.
A closed segment is folded into its enclosing one, so a stage's steps
include the steps of the stages and branches nested inside it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from stagegraph.contracts.enums import NodeKind, NodeType
from stagegraph.contracts.protocols import StatusTimingComputer
from stagegraph.contracts.status import RunStatus
from stagegraph.contracts.trace import ExecutionNode, PipelineRun
from stagegraph.core.graph import SemanticNode
from stagegraph.engine.chunks import StandardChunkVisitor
from stagegraph.engine.clock import DEFAULT_CLOCK, Clock
from stagegraph.engine.node_util import is_parallel_branch, is_paused_for_input_step, is_stage
from stagegraph.engine.status import TraceStatusComputer


@dataclass
class _Segment:
    """Steps collected between a block's end and its start (scan order)."""

    steps: list[SemanticNode] = field(default_factory=list)


class PipelineStepVisitor(StandardChunkVisitor):
    """Collects step nodes, optionally only those under one stage or branch.

    Args:
        run: Run whose trace is being scanned
        node: Stage or branch start node to scope to; None collects every step
        computer: Status/Timing Computer. Defaults to TraceStatusComputer.
        clock: Wall clock handed to the default computer
    """

    def __init__(
        self,
        run: PipelineRun,
        node: ExecutionNode | None = None,
        *,
        computer: StatusTimingComputer | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__()
        self._run = run
        self._target = node
        self._computer: StatusTimingComputer = (
            computer if computer is not None else TraceStatusComputer(clock if clock is not None else DEFAULT_CLOCK)
        )
        self._root = _Segment()
        self._open: list[_Segment] = []
        self._captured: list[SemanticNode] | None = None
        # Segment each step currently sits in, by step id
        self._placed: dict[str, _Segment] = {}

    @property
    def steps(self) -> list[SemanticNode]:
        """Collected steps in execution order."""
        if self._target is None:
            collected = list(self._root.steps)
            for segment in reversed(self._open):
                collected.extend(segment.steps)
        else:
            collected = list(self._captured or [])
        return list(reversed(collected))

    def get_step(self, step_id: str) -> SemanticNode | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def chunk_start(self, start_node: ExecutionNode, before_block: ExecutionNode | None) -> None:
        super().chunk_start(start_node, before_block)
        self._close(start_node)

    def chunk_end(self, end_node: ExecutionNode, after_block: ExecutionNode | None) -> None:
        super().chunk_end(end_node, after_block)
        self._open.append(_Segment())
        if end_node.kind != NodeKind.BLOCK_END:
            self.atom_node(None, end_node, after_block)

    def parallel_branch_start(self, parallel_start_node: ExecutionNode, branch_start_node: ExecutionNode) -> None:
        self._close(branch_start_node)

    def parallel_branch_end(self, parallel_start_node: ExecutionNode, branch_end_node: ExecutionNode | None) -> None:
        self._open.append(_Segment())
        # A running branch reports its newest step as the end; it belongs to the branch
        if branch_end_node is not None and branch_end_node.kind == NodeKind.ATOM:
            self.atom_node(None, branch_end_node, None)

    def atom_node(self, before: ExecutionNode | None, atom_node: ExecutionNode, after: ExecutionNode | None) -> None:
        if atom_node.kind != NodeKind.ATOM:
            return
        if is_stage(atom_node) or is_parallel_branch(atom_node):
            return

        if is_paused_for_input_step(atom_node):
            status = RunStatus.paused()
        else:
            status = RunStatus.from_node(atom_node)
        timing = self._computer.compute_timing(self._run, atom_node.pause_millis, atom_node, atom_node, after)
        step = SemanticNode.wrap(atom_node, NodeType.STEP, status, timing)

        # The head of a running stage is reported again by the branch or stage it sits in
        previous = self._placed.get(step.id)
        if previous is not None:
            previous.steps = [s for s in previous.steps if s.id != step.id]
        segment = self._current()
        segment.steps.append(step)
        self._placed[step.id] = segment

    def _current(self) -> _Segment:
        return self._open[-1] if self._open else self._root

    def _close(self, start_node: ExecutionNode) -> None:
        segment = self._open.pop() if self._open else _Segment()
        if self._target is not None and start_node.node_id == self._target.node_id:
            self._captured = list(segment.steps)
        enclosing = self._current()
        enclosing.steps.extend(segment.steps)
        for step in segment.steps:
            self._placed[step.id] = enclosing
