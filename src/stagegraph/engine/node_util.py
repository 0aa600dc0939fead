"""Predicates over raw execution nodes.

These classify nodes by the markers the pipeline front-end attaches: labels
and branch names, stage tags, and the step function that produced them.
"""

from __future__ import annotations

from stagegraph.contracts.enums import NodeKind, NodeType
from stagegraph.contracts.trace import (
    SKIPPED_STAGE_STATUSES,
    STAGE_STATUS_TAG,
    SYNTHETIC_STAGE_TAG,
    ExecutionNode,
)

# Step functions with special meaning to the graph builder
STAGE_FUNCTION = "stage"
AGENT_FUNCTION = "node"


def is_synthetic_stage(node: ExecutionNode | None) -> bool:
    """Stage injected by the front-end (implicit checkout, post actions)."""
    return node is not None and SYNTHETIC_STAGE_TAG in node.tags


def is_skipped_stage(node: ExecutionNode | None) -> bool:
    return node is not None and node.tags.get(STAGE_STATUS_TAG) in SKIPPED_STAGE_STATUSES


def is_stage(node: ExecutionNode | None) -> bool:
    """Legacy stage step, or a labelled block that is not a parallel branch."""
    if node is None:
        return False
    if node.function_name == STAGE_FUNCTION and not is_synthetic_stage(node):
        return True
    return node.label is not None and node.thread_name is None


def is_parallel_branch(node: ExecutionNode | None) -> bool:
    return node is not None and node.label is not None and node.thread_name is not None


def is_agent_start(node: ExecutionNode | None) -> bool:
    """Start of an executor allocation block."""
    return node is not None and node.kind == NodeKind.BLOCK_START and node.function_name == AGENT_FUNCTION


def is_paused_for_input_step(node: ExecutionNode | None) -> bool:
    return node is not None and node.kind == NodeKind.ATOM and node.paused_for_input


def is_flow_start(node: ExecutionNode | None) -> bool:
    return node is not None and node.kind == NodeKind.FLOW_START


def get_cause_of_blockage(stage: ExecutionNode, agent_node: ExecutionNode | None) -> str | None:
    """Why a stage's executor allocation is still waiting, if it belongs to the stage."""
    if agent_node is None:
        return None
    if stage.node_id in agent_node.parent_ids:
        return agent_node.queue_cause
    return None


def node_type_of(node: ExecutionNode) -> NodeType:
    if is_stage(node):
        return NodeType.STAGE
    if is_parallel_branch(node):
        return NodeType.PARALLEL_BRANCH
    return NodeType.STEP
