"""Tests for execution-node predicates."""

import pytest

from stagegraph.contracts import ExecutionNode, NodeKind, NodeType
from stagegraph.engine.node_util import (
    get_cause_of_blockage,
    is_agent_start,
    is_flow_start,
    is_parallel_branch,
    is_paused_for_input_step,
    is_skipped_stage,
    is_stage,
    is_synthetic_stage,
    node_type_of,
)


def _node(function: str = "sh", kind: NodeKind = NodeKind.ATOM, **fields: object) -> ExecutionNode:
    return ExecutionNode(node_id="9", display_name="n", function_name=function, kind=kind, **fields)  # type: ignore[arg-type]


STAGE = _node("stage", NodeKind.BLOCK_START, label="build")
BRANCH = _node("parallel", NodeKind.BLOCK_START, label="Branch: a", thread_name="a")
LEGACY_STAGE = _node("stage")
MARKER_STAGE = _node("echo", NodeKind.BLOCK_START, label="lint")
SYNTHETIC = _node("stage", NodeKind.BLOCK_START, tags={"SYNTHETIC_STAGE": "post"})
STEP = _node()


class TestIsStage:
    @pytest.mark.parametrize("node", [STAGE, LEGACY_STAGE, MARKER_STAGE])
    def test_stages(self, node: ExecutionNode) -> None:
        assert is_stage(node)
        assert node_type_of(node) == NodeType.STAGE

    @pytest.mark.parametrize("node", [BRANCH, SYNTHETIC, STEP, None])
    def test_not_stages(self, node: ExecutionNode | None) -> None:
        assert not is_stage(node)


class TestIsParallelBranch:
    def test_branch(self) -> None:
        assert is_parallel_branch(BRANCH)
        assert node_type_of(BRANCH) == NodeType.PARALLEL_BRANCH

    def test_thread_name_without_label(self) -> None:
        assert not is_parallel_branch(_node("parallel", thread_name="a"))

    def test_stage_is_not_branch(self) -> None:
        assert not is_parallel_branch(STAGE)

    def test_step_type(self) -> None:
        assert node_type_of(STEP) == NodeType.STEP


class TestStageTags:
    def test_synthetic(self) -> None:
        assert is_synthetic_stage(SYNTHETIC)
        assert not is_synthetic_stage(STAGE)
        assert not is_synthetic_stage(None)

    @pytest.mark.parametrize(
        "status",
        ["SKIPPED_FOR_CONDITIONAL", "SKIPPED_FOR_FAILURE", "SKIPPED_FOR_UNSTABLE", "SKIPPED_FOR_RESTART"],
    )
    def test_skipped(self, status: str) -> None:
        assert is_skipped_stage(_node("stage", NodeKind.BLOCK_START, label="x", tags={"STAGE_STATUS": status}))

    def test_other_stage_status_not_skipped(self) -> None:
        assert not is_skipped_stage(_node("stage", label="x", tags={"STAGE_STATUS": "FAILED_AND_CONTINUED"}))


class TestMarkers:
    def test_agent_start(self) -> None:
        assert is_agent_start(_node("node", NodeKind.BLOCK_START))
        assert not is_agent_start(_node("node", NodeKind.ATOM))

    def test_paused_for_input_needs_atom(self) -> None:
        assert is_paused_for_input_step(_node("input", paused_for_input=True))
        assert not is_paused_for_input_step(_node("input", NodeKind.BLOCK_START, paused_for_input=True))
        assert not is_paused_for_input_step(_node("input"))

    def test_flow_start(self) -> None:
        assert is_flow_start(_node("flow_start", NodeKind.FLOW_START))
        assert not is_flow_start(STEP)


class TestCauseOfBlockage:
    def test_agent_inside_stage(self) -> None:
        stage = ExecutionNode(node_id="2", display_name="build", function_name="stage", label="build")
        agent = ExecutionNode(
            node_id="3",
            display_name="Allocate node",
            function_name="node",
            kind=NodeKind.BLOCK_START,
            parent_ids=("2",),
            queue_cause="Waiting for next available executor",
        )
        assert get_cause_of_blockage(stage, agent) == "Waiting for next available executor"

    def test_agent_of_other_stage(self) -> None:
        stage = ExecutionNode(node_id="2", display_name="build", function_name="stage", label="build")
        agent = ExecutionNode(
            node_id="8",
            display_name="Allocate node",
            function_name="node",
            kind=NodeKind.BLOCK_START,
            parent_ids=("7",),
            queue_cause="Waiting",
        )
        assert get_cause_of_blockage(stage, agent) is None

    def test_no_agent(self) -> None:
        assert get_cause_of_blockage(STAGE, None) is None
