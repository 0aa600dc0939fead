"""Reference Status/Timing Computer working from node markers.

The execution engine normally supplies its own computer. This one derives
status and timing purely from the markers on the nodes at the boundaries of
a chunk, which is enough for engines that record timing and errors on block
start/end nodes.
"""

from __future__ import annotations

from stagegraph.contracts.enums import GenericStatus, NodeKind
from stagegraph.contracts.status import RunStatus, TimingInfo
from stagegraph.contracts.trace import ExecutionNode, PipelineRun
from stagegraph.engine.clock import DEFAULT_CLOCK, Clock
from stagegraph.engine.node_util import is_parallel_branch


class TraceStatusComputer:
    """Computes chunk status and timing from ExecutionNode markers.

    Args:
        clock: Wall clock used for chunks that are still open. Defaults to
            the system clock; inject MockClock for deterministic tests.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock if clock is not None else DEFAULT_CLOCK

    def classify(
        self,
        run: PipelineRun,
        first: ExecutionNode,
        last: ExecutionNode,
        after: ExecutionNode | None,
    ) -> GenericStatus:
        if not first.is_executed:
            return GenericStatus.NOT_EXECUTED
        still_open = (after is None and (run.building or last.active)) or self._is_open_head(run, last)
        if still_open:
            if last.paused_for_input:
                return GenericStatus.PAUSED_PENDING_INPUT
            if last.active and last.queue_cause is not None:
                return GenericStatus.QUEUED
            return GenericStatus.IN_PROGRESS
        if last.error is not None:
            return GenericStatus.ABORTED if last.error.aborted else GenericStatus.FAILURE
        return GenericStatus.SUCCESS

    def _is_open_head(self, run: PipelineRun, last: ExecutionNode) -> bool:
        """True when last is a current head the engine is still working from.

        A finished branch end stays a head until the whole parallel block
        closes, so it does not count as open.
        """
        if not run.building or run.execution is None:
            return False
        if all(head.node_id != last.node_id for head in run.execution.current_heads):
            return False
        if last.kind == NodeKind.BLOCK_END:
            return not is_parallel_branch(run.execution.start_of(last))
        return True

    def compute_status(
        self,
        run: PipelineRun,
        before: ExecutionNode | None,
        first: ExecutionNode,
        last: ExecutionNode,
        after: ExecutionNode | None,
    ) -> RunStatus:
        return RunStatus.of(self.classify(run, first, last, after))

    def compute_timing(
        self,
        run: PipelineRun,
        pause_millis: int,
        first: ExecutionNode,
        last: ExecutionNode,
        after: ExecutionNode | None,
    ) -> TimingInfo:
        start = first.start_time_millis if first.start_time_millis is not None else 0
        if after is not None and after.start_time_millis is not None:
            end = after.start_time_millis
        elif run.building:
            end = self._clock.now_millis()
        elif run.end_time_millis is not None:
            end = run.end_time_millis
        else:
            end = last.start_time_millis if last.start_time_millis is not None else start

        duration = max(end - start, 0)
        return TimingInfo(
            total_duration_millis=duration,
            pause_duration_millis=min(abs(pause_millis), duration),
            start_time_millis=start,
        )

    def compute_generic_status(self, first: ExecutionNode) -> RunStatus:
        return RunStatus.from_node(first)
