# src/stagegraph/core/graph/graph.py
"""PipelineGraph: ordered, indexed DAG of semantic nodes.

Wraps a NetworkX DiGraph. Each ordered node pair carries two independent
flags:

- ``edge``: a forward display edge (stage -> branch, branch -> next stage)
- ``parent``: the source is recorded as a parent of the target

The two relations differ: a branch has a display edge to the stage that
follows its parallel block, but that stage's parent is the previous stage,
not the branch.
"""

from __future__ import annotations

from collections import Counter, deque
from collections.abc import Iterator, Sequence
from typing import Any, overload

import networkx as nx
from networkx import DiGraph

from stagegraph.contracts.errors import GraphInvariantError
from stagegraph.core.graph.models import SemanticNode


class PipelineGraph(Sequence[SemanticNode]):
    """Semantic nodes in execution order plus their edge/parent relations.

    Indexing and iteration follow the node order. Construction methods are
    used by the visitor during a single scan and by union; callers treat a
    finished graph as read-only.
    """

    def __init__(self) -> None:
        self._graph: DiGraph[str] = nx.DiGraph()
        self._order: deque[str] = deque()

    # -- sequence protocol ------------------------------------------------

    @overload
    def __getitem__(self, index: int) -> SemanticNode: ...

    @overload
    def __getitem__(self, index: slice) -> list[SemanticNode]: ...

    def __getitem__(self, index: int | slice) -> SemanticNode | list[SemanticNode]:
        if isinstance(index, slice):
            return [self._info(node_id) for node_id in list(self._order)[index]]
        return self._info(self._order[index])

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[SemanticNode]:
        return (self._info(node_id) for node_id in self._order)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, str) and self._graph.has_node(node_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PipelineGraph):
            return NotImplemented
        return self.describe() == other.describe()

    __hash__ = None  # type: ignore[assignment]

    # -- construction -----------------------------------------------------

    def add_node(self, node: SemanticNode) -> None:
        """Index a node without placing it in the ordering."""
        self._graph.add_node(node.id, info=node)

    def push(self, node_id: str) -> None:
        """Place an indexed node at the front of the ordering.

        The scanner walks backward, so pushing each finished node to the
        front leaves the ordering in execution order.
        """
        self._require(node_id)
        self._order.appendleft(node_id)

    def append(self, node_id: str) -> None:
        """Place an indexed node at the end of the ordering."""
        self._require(node_id)
        self._order.append(node_id)

    def is_ordered(self, node_id: str) -> bool:
        return node_id in self._order

    def add_edge(self, from_id: str, to_id: str) -> None:
        """Add a display edge, keeping any parent flag already on the pair."""
        self._link(from_id, to_id, edge=True, parent=False)

    def add_parent(self, child_id: str, parent_id: str) -> None:
        """Record parent_id as a parent of child_id."""
        self._link(parent_id, child_id, edge=False, parent=True)

    def _link(self, from_id: str, to_id: str, *, edge: bool, parent: bool) -> None:
        self._require(from_id)
        self._require(to_id)
        if self._graph.has_edge(from_id, to_id):
            data = self._graph.edges[from_id, to_id]
            data["edge"] = data["edge"] or edge
            data["parent"] = data["parent"] or parent
        else:
            self._graph.add_edge(from_id, to_id, edge=edge, parent=parent)

    def _require(self, node_id: str) -> None:
        if not self._graph.has_node(node_id):
            raise KeyError(f"Node '{node_id}' is not in the graph")

    def copy(self) -> PipelineGraph:
        """Return an independent graph sharing the (frozen) node values."""
        clone = PipelineGraph()
        clone._graph = self._graph.copy()
        clone._order = deque(self._order)
        return clone

    # -- queries ----------------------------------------------------------

    @property
    def ordered_nodes(self) -> list[SemanticNode]:
        return list(self)

    def get_node(self, node_id: str) -> SemanticNode | None:
        if not self._graph.has_node(node_id):
            return None
        return self._info(node_id)

    def edges_of(self, node_id: str) -> list[SemanticNode]:
        """Display edges out of node_id, in the order they were added."""
        return [self._info(target) for target, data in self._graph.succ[node_id].items() if data["edge"]]

    def parents_of(self, node_id: str) -> list[SemanticNode]:
        """Parents of node_id, in the order they were recorded."""
        return [self._info(source) for source, data in self._graph.pred[node_id].items() if data["parent"]]

    def first_parent(self, node_id: str) -> SemanticNode | None:
        parents = self.parents_of(node_id)
        return parents[0] if parents else None

    def has_edge(self, from_id: str, to_id: str) -> bool:
        return self._graph.has_edge(from_id, to_id) and bool(self._graph.edges[from_id, to_id]["edge"])

    def roots(self) -> list[SemanticNode]:
        """Ordered nodes with neither a parent nor an incoming display edge."""
        return [node for node in self if not self._graph.pred[node.id]]

    def get_nx_graph(self) -> DiGraph[str]:
        """Return a frozen copy of the display-edge subgraph.

        Mutation attempts raise nx.NetworkXError.
        """
        edges = nx.DiGraph()
        edges.add_nodes_from(self._graph.nodes(data=True))
        edges.add_edges_from((u, v) for u, v, data in self._graph.edges(data=True) if data["edge"])
        return nx.freeze(edges)  # type: ignore[no-any-return]

    def validate(self) -> None:
        """Validate structural invariants.

        Validates:
        1. Every ordered id appears once and is indexed
        2. Every indexed node is ordered
        3. Display edges contain no cycle

        Raises:
            GraphInvariantError: If validation fails
        """
        counts = Counter(self._order)
        duplicates = sorted(node_id for node_id, count in counts.items() if count > 1)
        if duplicates:
            raise GraphInvariantError(f"Node ids appear more than once: {duplicates}")

        unordered = [node_id for node_id in self._graph.nodes if node_id not in counts]
        if unordered:
            raise GraphInvariantError(f"Indexed nodes missing from the ordering: {sorted(unordered)}")

        edges = self.get_nx_graph()
        if not nx.is_directed_acyclic_graph(edges):
            try:
                cycle = nx.find_cycle(edges)
                cycle_str = " -> ".join(f"{edge[0]}" for edge in cycle)
                raise GraphInvariantError(f"Display edges contain a cycle: {cycle_str}")
            except nx.NetworkXNoCycle:
                raise GraphInvariantError("Display edges contain a cycle") from None

    def describe(self) -> dict[str, Any]:
        """Structural summary used for equality and debugging."""
        return {
            "order": list(self._order),
            "nodes": {node_id: self._info(node_id) for node_id in self._order},
            "edges": {node_id: [n.id for n in self.edges_of(node_id)] for node_id in self._order},
            "parents": {node_id: [n.id for n in self.parents_of(node_id)] for node_id in self._order},
        }

    def _info(self, node_id: str) -> SemanticNode:
        # All nodes have "info" - added via add_node(), direct access is safe
        info: SemanticNode = self._graph.nodes[node_id]["info"]
        return info

    def __repr__(self) -> str:
        return f"PipelineGraph(nodes={list(self._order)!r})"
