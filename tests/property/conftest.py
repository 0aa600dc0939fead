# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

A pipeline shape is a list of top-level items, each one of:
- ("stage", n_steps): a stage with n_steps sequential steps
- ("stage_parallel", branch_names): a stage wrapping a parallel block
- ("parallel", branch_names): a parallel block with no enclosing stage

Every branch runs one step. Shapes are replayed through TraceFactory, so two
traces built from the same shape prefix share node ids.

Usage:
    from tests.property.conftest import pipeline_shapes, trace_from_shape

    @given(shape=pipeline_shapes)
    def test_graph_is_valid(shape: PipelineShape) -> None:
        ...
"""

from __future__ import annotations

from typing import Any

from hypothesis import strategies as st

from stagegraph.testing import TraceFactory

PipelineItem = tuple[str, Any]
PipelineShape = list[PipelineItem]

branch_names = st.lists(
    st.from_regex(r"[a-z][a-z0-9]{1,6}", fullmatch=True),
    min_size=1,
    max_size=4,
    unique=True,
)

pipeline_items = st.one_of(
    st.tuples(st.just("stage"), st.integers(min_value=0, max_value=3)),
    st.tuples(st.just("stage_parallel"), branch_names),
    st.tuples(st.just("parallel"), branch_names),
)

pipeline_shapes = st.lists(pipeline_items, min_size=1, max_size=5)


def _add_parallel(trace: TraceFactory, names: list[str]) -> None:
    with trace.parallel():
        for name in names:
            with trace.branch(name):
                trace.step(f"echo {name}")


def trace_from_shape(shape: PipelineShape, *, finished: bool = True) -> TraceFactory:
    """Replay a shape; the run stays in progress unless finished."""
    trace = TraceFactory(start_millis=0)
    for index, (kind, payload) in enumerate(shape):
        if kind == "stage":
            with trace.stage(f"stage{index}"):
                for step in range(payload):
                    trace.step(f"step {step}")
        elif kind == "stage_parallel":
            with trace.stage(f"stage{index}"):
                _add_parallel(trace, payload)
        else:
            _add_parallel(trace, payload)
    if finished:
        trace.end()
    return trace


def expected_node_count(shape: PipelineShape) -> int:
    """Stages, synthetic stages and branches the graph should contain."""
    return sum(1 if kind == "stage" else 1 + len(payload) for kind, payload in shape)
