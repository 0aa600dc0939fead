"""Tests for ExecutionNode and FlowExecution."""

import pytest

from stagegraph.contracts import ExecutionNode, FlowExecution, NodeKind, NodeOrigin


def _node(node_id: str, *parents: str, **fields: object) -> ExecutionNode:
    return ExecutionNode(
        node_id=node_id,
        display_name=f"node {node_id}",
        function_name="sh",
        parent_ids=parents,
        **fields,  # type: ignore[arg-type]
    )


class TestExecutionNode:
    def test_block_end_requires_start_id(self) -> None:
        with pytest.raises(ValueError, match="must reference its start node"):
            _node("3", kind=NodeKind.BLOCK_END)

    def test_start_id_only_on_block_end(self) -> None:
        with pytest.raises(ValueError, match="Only block end nodes"):
            _node("3", kind=NodeKind.ATOM, start_id="2")

    def test_negative_pause_rejected(self) -> None:
        with pytest.raises(ValueError, match="pause_millis"):
            _node("3", pause_millis=-1)

    def test_tags_are_read_only(self) -> None:
        tags = {"STAGE_STATUS": "SKIPPED_FOR_CONDITIONAL"}
        node = _node("3", tags=tags)
        tags["STAGE_STATUS"] = "changed"
        assert node.tags["STAGE_STATUS"] == "SKIPPED_FOR_CONDITIONAL"
        with pytest.raises(TypeError):
            node.tags["other"] = "x"  # type: ignore[index]

    def test_nodes_are_hashable(self) -> None:
        node = _node("3", tags={"SYNTHETIC_STAGE": "post"})
        assert {node: 1}[node] == 1

    def test_origin_defaults_to_real(self) -> None:
        node = _node("3")
        assert node.origin == NodeOrigin.REAL
        assert not node.is_synthetic

    def test_is_executed(self) -> None:
        assert _node("3").is_executed
        assert not _node("4", not_executed=True).is_executed


class TestFlowExecution:
    @pytest.fixture
    def execution(self) -> FlowExecution:
        # 1 -> 2 -> (3, 4) -> 5
        nodes = [
            _node("1", kind=NodeKind.FLOW_START),
            _node("2", "1", kind=NodeKind.BLOCK_START),
            _node("3", "2"),
            _node("4", "2"),
            _node("5", "3", "4", kind=NodeKind.BLOCK_END, start_id="2"),
        ]
        return FlowExecution({n.node_id: n for n in nodes}, ("5",))

    def test_unknown_head_rejected(self) -> None:
        with pytest.raises(ValueError, match="unknown nodes"):
            FlowExecution({}, ("9",))

    def test_current_heads(self, execution: FlowExecution) -> None:
        assert [n.node_id for n in execution.current_heads] == ["5"]

    def test_depth_first_visits_each_node_once(self, execution: FlowExecution) -> None:
        visited = [n.node_id for n in execution.iter_depth_first()]
        assert visited == ["5", "3", "2", "1", "4"]

    def test_find_first_match(self, execution: FlowExecution) -> None:
        match = execution.find_first_match(lambda n: n.kind == NodeKind.BLOCK_START)
        assert match is not None
        assert match.node_id == "2"

    def test_find_first_match_none(self, execution: FlowExecution) -> None:
        assert execution.find_first_match(lambda n: n.node_id == "42") is None

    def test_start_of(self, execution: FlowExecution) -> None:
        end = execution.get_node("5")
        assert end is not None
        start = execution.start_of(end)
        assert start is not None
        assert start.node_id == "2"

    def test_start_of_non_block_end(self, execution: FlowExecution) -> None:
        atom = execution.get_node("3")
        assert atom is not None
        assert execution.start_of(atom) is None

    def test_len(self, execution: FlowExecution) -> None:
        assert len(execution) == 5
