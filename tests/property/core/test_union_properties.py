# tests/property/core/test_union_properties.py
"""Property-based tests for splicing a later scan onto an earlier graph.

The earlier scan covers a prefix of the pipeline's top-level items while
the run is still building; the later scan covers the whole pipeline.

Invariants:
- Merging keeps the earlier nodes (same values, same positions)
- Merging reproduces the later scan's ordering and relations
- Union never mutates its inputs
- Union with a graph that is not longer returns an equal copy
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from stagegraph.core.graph import PipelineGraph, union_graphs
from tests.conftest import build_graph
from tests.property.conftest import PipelineShape, pipeline_shapes, trace_from_shape
from tests.property.settings import STANDARD_SETTINGS


@st.composite
def scan_pairs(draw: st.DrawFn) -> tuple[PipelineGraph, PipelineGraph]:
    """An earlier (prefix, still building) graph and a later (complete) graph."""
    shape: PipelineShape = draw(pipeline_shapes)
    prefix = draw(st.integers(min_value=0, max_value=len(shape)))
    earlier = build_graph(trace_from_shape(shape[:prefix], finished=False)).graph
    later = build_graph(trace_from_shape(shape)).graph
    return earlier, later


def _layout(graph: PipelineGraph) -> dict[str, object]:
    description = graph.describe()
    return {key: description[key] for key in ("order", "edges", "parents")}


class TestUnionProperties:
    @given(pair=scan_pairs())
    @STANDARD_SETTINGS
    def test_earlier_nodes_are_kept(self, pair: tuple[PipelineGraph, PipelineGraph]) -> None:
        earlier, later = pair

        merged = union_graphs(earlier, later)

        assert merged[: len(earlier)] == list(earlier)

    @given(pair=scan_pairs())
    @STANDARD_SETTINGS
    def test_merge_reproduces_later_layout(self, pair: tuple[PipelineGraph, PipelineGraph]) -> None:
        earlier, later = pair

        merged = union_graphs(earlier, later)

        assert _layout(merged) == _layout(later)
        merged.validate()

    @given(pair=scan_pairs())
    @STANDARD_SETTINGS
    def test_inputs_not_mutated(self, pair: tuple[PipelineGraph, PipelineGraph]) -> None:
        earlier, later = pair
        earlier_before, later_before = earlier.describe(), later.describe()

        union_graphs(earlier, later, reset_status=True)

        assert earlier.describe() == earlier_before
        assert later.describe() == later_before

    @given(pair=scan_pairs())
    @STANDARD_SETTINGS
    def test_union_with_shorter_is_copy(self, pair: tuple[PipelineGraph, PipelineGraph]) -> None:
        earlier, later = pair

        assert union_graphs(later, earlier) == later
        assert union_graphs(later, later) == later

    @given(shape=pipeline_shapes)
    @STANDARD_SETTINGS
    def test_union_onto_empty_graph(self, shape: PipelineShape) -> None:
        later = build_graph(trace_from_shape(shape)).graph

        assert union_graphs(PipelineGraph(), later) == later
