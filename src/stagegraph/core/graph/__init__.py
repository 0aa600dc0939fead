# src/stagegraph/core/graph/__init__.py
"""Semantic display graph: nodes, ordered/indexed graph, and union."""

from stagegraph.core.graph.graph import PipelineGraph
from stagegraph.core.graph.models import SemanticNode, display_name_of
from stagegraph.core.graph.union import union_graphs

__all__ = [
    "PipelineGraph",
    "SemanticNode",
    "display_name_of",
    "union_graphs",
]
