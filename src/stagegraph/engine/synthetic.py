"""Synthetic stages wrapping parallel blocks that have no enclosing stage.

Every parallel block shown to the client must sit under a stage. When a
pipeline declares a parallel block at top level, the visitor asks this
factory for a wrapper stage whose status and timing are aggregated from the
branches.
"""

from __future__ import annotations

from collections.abc import Sequence

from stagegraph.contracts.enums import NodeKind, NodeOrigin, NodeType, RunResult, RunState
from stagegraph.contracts.status import RunStatus, TimingInfo
from stagegraph.contracts.trace import ExecutionNode
from stagegraph.core.graph import PipelineGraph, SemanticNode
from stagegraph.engine.clock import Clock

PARALLEL_SYNTHETIC_STAGE_NAME = "Parallel"


def synthetic_stage_id(first_node_id: str, stage_name: str) -> str:
    """Deterministic id for a synthetic stage.

    A top-level parallel block whose first branch has id 12 is wrapped in a
    stage with id ``12-parallel-synthetic``, so a client that later asks for
    that id gets the same wrapper back.
    """
    return f"{first_node_id}-{stage_name.lower()}-synthetic"


def aggregate_status(branches: Sequence[SemanticNode]) -> RunStatus:
    """Finished only if every branch finished; failure wins over unknown."""
    states = [branch.status.state for branch in branches]
    results = [branch.status.result for branch in branches]

    if all(state == RunState.FINISHED for state in states):
        state = RunState.FINISHED
    elif RunState.PAUSED in states:
        state = RunState.PAUSED
    else:
        state = RunState.RUNNING

    if RunResult.FAILURE in results:
        result = RunResult.FAILURE
    elif RunResult.UNKNOWN in results:
        result = RunResult.UNKNOWN
    else:
        result = RunResult.SUCCESS
    return RunStatus(result=result, state=state)


def create_parallel_synthetic_node(
    graph: PipelineGraph,
    branches: Sequence[SemanticNode],
    *,
    clock: Clock,
    stage_name: str = PARALLEL_SYNTHETIC_STAGE_NAME,
) -> SemanticNode | None:
    """Build a wrapper stage for branches and link it into graph.

    Args:
        graph: Graph being built; the wrapper is indexed and linked but not
            placed in the ordering (the caller decides where it goes)
        branches: Collected branches in display order, first branch first
        clock: Source of the wrapper's start time
        stage_name: Label of the wrapper stage

    Returns:
        The wrapper, or None when there are no branches to wrap.
    """
    if not branches:
        return None

    first_branch = branches[0]
    enclosing = graph.first_parent(first_branch.id)
    parent_ids = enclosing.node.parent_ids if enclosing is not None else ()
    now = clock.now_millis()

    synthetic = ExecutionNode(
        node_id=synthetic_stage_id(first_branch.id, stage_name),
        display_name=stage_name,
        function_name="parallel",
        kind=NodeKind.BLOCK_START,
        parent_ids=parent_ids,
        start_time_millis=now,
        label=stage_name,
        origin=NodeOrigin.SYNTHETIC,
    )
    timing = TimingInfo(
        total_duration_millis=sum(branch.timing.total_duration_millis for branch in branches),
        pause_duration_millis=sum(branch.timing.pause_duration_millis for branch in branches),
        start_time_millis=now,
    )
    stage = SemanticNode.wrap(synthetic, NodeType.STAGE, aggregate_status(branches), timing)

    graph.add_node(stage)
    for branch in branches:
        graph.add_parent(branch.id, stage.id)
        graph.add_edge(stage.id, branch.id)
    return stage
