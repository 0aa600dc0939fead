# src/stagegraph/core/graph/union.py
"""Union of an already-returned graph with a fresh rescan of the same run.

A polling client keeps the node identities it has already rendered. When the
run has advanced, the nodes beyond the old graph's length are spliced onto
its tail instead of rebuilding the whole graph. The splice point needs case
analysis because the old graph may end on a stage, or part-way through a
parallel block whose remaining branches only appear in the rescan.

Union never mutates either input: it works on a copy of the old graph.
"""

from __future__ import annotations

import structlog

from stagegraph.contracts.enums import NodeType
from stagegraph.core.graph.graph import PipelineGraph
from stagegraph.core.graph.models import SemanticNode

slog = structlog.get_logger(__name__)


def union_graphs(
    current: PipelineGraph,
    that: PipelineGraph,
    *,
    reset_status: bool = False,
) -> PipelineGraph:
    """Splice the tail of ``that`` onto ``current``.

    Args:
        current: Graph previously returned to the client
        that: Graph from a newer scan of the same execution
        reset_status: Give spliced nodes the unset status and zero timing.
            Used when ``that`` comes from a previous run and only its layout
            should be projected onto the current one.

    Returns:
        A new graph: the old nodes in their old order followed by copies of
        the new ones. When ``that`` is not longer than ``current`` this is a
        plain copy of ``current``.
    """
    merged = current.copy()
    current_size = len(current)
    future_size = len(that)
    if current_size >= future_size:
        return merged

    future_nodes = that[current_size:]
    spliced: list[SemanticNode] = []
    for future in future_nodes:
        if future.id in merged:
            slog.warning("union_duplicate_node_skipped", node_id=future.id)
            continue
        node = future.without_status() if reset_status else future
        merged.add_node(node)
        merged.append(node.id)
        spliced.append(node)

    if current_size > 0:
        _stitch(merged, current, that, latest=current[current_size - 1], future=future_nodes[0])

    for node in spliced:
        for edge in that.edges_of(node.id):
            if edge.id in merged:
                merged.add_edge(node.id, edge.id)
        for parent in that.parents_of(node.id):
            if parent.id in merged:
                merged.add_parent(node.id, parent.id)

    slog.debug(
        "graphs_merged",
        current_nodes=current_size,
        future_nodes=future_size,
        spliced=len(spliced),
    )
    return merged


def _stitch(
    merged: PipelineGraph,
    current: PipelineGraph,
    that: PipelineGraph,
    *,
    latest: SemanticNode,
    future: SemanticNode,
) -> None:
    """Connect the last old node to the first new one."""
    if latest.type == NodeType.STAGE:
        if future.type == NodeType.STAGE:
            _add_edge_if_present(merged, latest.id, future.id)
        elif future.type == NodeType.PARALLEL_BRANCH:
            that_stage = that.first_parent(future.id)
            if that_stage is not None and that_stage.id == latest.id:
                _copy_missing_edges(merged, that, source_id=that_stage.id, target_id=latest.id)

    elif latest.type == NodeType.PARALLEL_BRANCH:
        future_stage: SemanticNode | None = None
        that_stage: SemanticNode | None = None
        future_parent = that.first_parent(future.id)
        latest_parent = current.first_parent(latest.id)

        if future.type == NodeType.STAGE:
            that_stage = future
            future_stage = future
        elif (
            future.type == NodeType.PARALLEL_BRANCH
            and future_parent is not None
            and latest_parent is not None
            and future_parent.id == latest_parent.id
        ):
            that_stage = future_parent
            future_edges = that.edges_of(future.id)
            if future_edges:
                future_stage = future_edges[0]

        stage = latest_parent
        if stage is None:
            return

        # Every sibling of the old tail now continues into the new stage
        if future_stage is not None:
            for sibling in current.edges_of(stage.id):
                if sibling.id in merged:
                    _add_edge_if_present(merged, sibling.id, future_stage.id)

        # Branches that only became visible in the rescan
        if that_stage is not None and future.type == NodeType.PARALLEL_BRANCH:
            _copy_missing_edges(merged, that, source_id=that_stage.id, target_id=stage.id)


def _copy_missing_edges(merged: PipelineGraph, that: PipelineGraph, *, source_id: str, target_id: str) -> None:
    for edge in that.edges_of(source_id):
        if not merged.has_edge(target_id, edge.id):
            _add_edge_if_present(merged, target_id, edge.id)


def _add_edge_if_present(merged: PipelineGraph, from_id: str, to_id: str) -> None:
    if to_id not in merged or from_id == to_id:
        return
    merged.add_edge(from_id, to_id)
