"""Status and timing values attached to semantic nodes.

Both are immutable once attached. A still-running node gets its timing
recomputed against the wall clock on every scan, never updated in place.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from stagegraph.contracts.enums import GenericStatus, RunResult, RunState

if TYPE_CHECKING:
    from stagegraph.contracts.trace import ExecutionNode


_GENERIC_STATUS_MAP: dict[GenericStatus, tuple[RunResult, RunState]] = {
    GenericStatus.PAUSED_PENDING_INPUT: (RunResult.UNKNOWN, RunState.PAUSED),
    GenericStatus.ABORTED: (RunResult.ABORTED, RunState.FINISHED),
    GenericStatus.FAILURE: (RunResult.FAILURE, RunState.FINISHED),
    GenericStatus.IN_PROGRESS: (RunResult.UNKNOWN, RunState.RUNNING),
    GenericStatus.UNSTABLE: (RunResult.UNSTABLE, RunState.FINISHED),
    GenericStatus.SUCCESS: (RunResult.SUCCESS, RunState.FINISHED),
    GenericStatus.NOT_EXECUTED: (RunResult.NOT_BUILT, RunState.NOT_BUILT),
    GenericStatus.QUEUED: (RunResult.UNKNOWN, RunState.QUEUED),
}


@dataclass(frozen=True, slots=True)
class RunStatus:
    """A (result, state) pair.

    Both fields are None only for the unset status, used when a node's
    layout is known but its outcome is not (projected future stages).
    """

    result: RunResult | None
    state: RunState | None

    @classmethod
    def of(cls, status: GenericStatus) -> RunStatus:
        result, state = _GENERIC_STATUS_MAP[status]
        return cls(result=result, state=state)

    @classmethod
    def unset(cls) -> RunStatus:
        return cls(result=None, state=None)

    @classmethod
    def paused(cls) -> RunStatus:
        return cls(result=RunResult.UNKNOWN, state=RunState.PAUSED)

    @classmethod
    def running(cls) -> RunStatus:
        return cls(result=RunResult.UNKNOWN, state=RunState.RUNNING)

    @classmethod
    def skipped(cls) -> RunStatus:
        return cls(result=RunResult.NOT_BUILT, state=RunState.SKIPPED)

    @classmethod
    def from_node(cls, node: ExecutionNode) -> RunStatus:
        """Classify a single node from its own markers.

        Active nodes are running; skipped nodes were never built; otherwise
        the error marker decides between failure, abort and success.
        """
        if node.active:
            return cls.running()
        if not node.is_executed:
            return cls.of(GenericStatus.NOT_EXECUTED)
        if node.error is not None:
            return cls.of(GenericStatus.ABORTED if node.error.aborted else GenericStatus.FAILURE)
        return cls.of(GenericStatus.SUCCESS)

    @property
    def is_unset(self) -> bool:
        return self.result is None and self.state is None


@dataclass(frozen=True, slots=True)
class TimingInfo:
    """Elapsed time, paused time and start time of a node, in milliseconds."""

    total_duration_millis: int = 0
    pause_duration_millis: int = 0
    start_time_millis: int = 0

    def __post_init__(self) -> None:
        if self.total_duration_millis < 0:
            raise ValueError(f"total_duration_millis must be >= 0, got {self.total_duration_millis}")
        if self.pause_duration_millis < 0:
            raise ValueError(f"pause_duration_millis must be >= 0, got {self.pause_duration_millis}")
