# src/stagegraph/core/graph/models.py
"""Semantic node type for the display graph.

Leaf module within core.graph: imports only contracts (prevents import cycles).
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from stagegraph.contracts.enums import NodeType
from stagegraph.contracts.status import RunStatus, TimingInfo
from stagegraph.contracts.trace import ExecutionNode


def display_name_of(node: ExecutionNode) -> str:
    """Branch name for parallel branches, else label, else raw display name."""
    if node.thread_name is not None:
        return node.thread_name
    if node.label is not None:
        return node.label
    return node.display_name


@dataclass(frozen=True, slots=True)
class SemanticNode:
    """A stage, parallel branch or step in the display graph.

    Frozen after construction. Edges and parent links are not stored on the
    node: they belong to the PipelineGraph that holds it, so the same node
    value can appear in an old graph and a merged graph without either
    graph's relationships leaking into the other.
    """

    id: str
    display_name: str
    type: NodeType
    status: RunStatus
    timing: TimingInfo
    node: ExecutionNode
    cause_of_failure: str | None = None

    @classmethod
    def wrap(
        cls,
        node: ExecutionNode,
        node_type: NodeType,
        status: RunStatus,
        timing: TimingInfo,
        *,
        cause_of_failure: str | None = None,
    ) -> SemanticNode:
        return cls(
            id=node.node_id,
            display_name=display_name_of(node),
            type=node_type,
            status=status,
            timing=timing,
            node=node,
            cause_of_failure=cause_of_failure,
        )

    def without_status(self) -> SemanticNode:
        """Copy with unset status and zero timing, keeping identity and layout."""
        return replace(self, status=RunStatus.unset(), timing=TimingInfo())
