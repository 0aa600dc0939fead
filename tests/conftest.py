# tests/conftest.py
"""Shared test fixtures and helpers.

Traces are built with stagegraph.testing.TraceFactory, which also produces
the scanner event stream for the trace, so tests exercise the visitors
through the same callback protocol the engine's scanner uses.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from stagegraph.core.config import StageGraphSettings
from stagegraph.engine import MockClock, PipelineNodeGraphBuilder, TraceStatusComputer
from stagegraph.testing import TraceFactory

# Wall-clock "now" used by every MockClock fixture
NOW_MILLIS = 100_000


def build_graph(
    trace: TraceFactory,
    *,
    clock: MockClock | None = None,
    settings: StageGraphSettings | None = None,
    building: bool | None = None,
) -> PipelineNodeGraphBuilder:
    """Scan a factory-built trace with a deterministic clock."""
    clock = clock if clock is not None else MockClock(start=NOW_MILLIS)
    return PipelineNodeGraphBuilder(
        trace.run(building=building),
        scanner=trace.scanner(),
        computer=TraceStatusComputer(clock),
        clock=clock,
        settings=settings,
    )


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock(start=NOW_MILLIS)


@pytest.fixture
def trace() -> TraceFactory:
    return TraceFactory(start_millis=0)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
