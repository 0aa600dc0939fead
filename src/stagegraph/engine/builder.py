"""PipelineNodeGraphBuilder: the graph operations exposed to the presentation layer.

Scans a run once at construction and answers node, step and union queries
against the result. A builder is created fresh for every poll; nothing is
cached across runs or requests.
"""

from __future__ import annotations

import structlog

from stagegraph.contracts.protocols import StatusTimingComputer, TraceScanner
from stagegraph.contracts.trace import PipelineRun
from stagegraph.core.config import StageGraphSettings
from stagegraph.core.graph import PipelineGraph, SemanticNode, union_graphs
from stagegraph.engine.clock import DEFAULT_CLOCK, Clock
from stagegraph.engine.node_util import is_parallel_branch, is_stage
from stagegraph.engine.status import TraceStatusComputer
from stagegraph.engine.steps import PipelineStepVisitor
from stagegraph.engine.visitor import PipelineGraphVisitor

slog = structlog.get_logger(__name__)


class PipelineNodeGraphBuilder:
    """Stage graph of one run plus step lookups.

    Example:
        builder = PipelineNodeGraphBuilder(run, scanner=engine_scanner)
        for node in builder.get_ordered_nodes():
            render(node, builder.graph.edges_of(node.id))
        steps = builder.get_steps("12")
    """

    def __init__(
        self,
        run: PipelineRun,
        *,
        scanner: TraceScanner,
        computer: StatusTimingComputer | None = None,
        clock: Clock | None = None,
        settings: StageGraphSettings | None = None,
    ) -> None:
        """Scan the run and build its graph.

        Args:
            run: Run to summarize
            scanner: Engine-supplied trace scanner
            computer: Status/Timing Computer. Defaults to TraceStatusComputer.
            clock: Wall clock for still-running nodes. Defaults to system clock.
            settings: Builder settings. Defaults to StageGraphSettings().
        """
        self._run = run
        self._scanner = scanner
        self._clock = clock if clock is not None else DEFAULT_CLOCK
        self._computer: StatusTimingComputer = computer if computer is not None else TraceStatusComputer(self._clock)
        self._settings = settings if settings is not None else StageGraphSettings()
        self._log = slog.bind(run_id=run.run_id, pipeline=run.name)

        visitor = PipelineGraphVisitor(run, computer=self._computer, clock=self._clock, settings=self._settings)
        if run.execution is not None:
            scanner.visit_simple_chunks(run.execution, visitor)
        else:
            self._log.debug("execution_unavailable")
        self.graph: PipelineGraph = visitor.graph

    def get_ordered_nodes(self) -> list[SemanticNode]:
        return self.graph.ordered_nodes

    def get_node_by_id(self, node_id: str) -> SemanticNode | None:
        return self.graph.get_node(node_id)

    def get_steps(self, node_id: str | None = None) -> list[SemanticNode]:
        """Steps of the stage or branch node_id, or of the whole run.

        Returns an empty list when there is no execution data or node_id does
        not name a stage or parallel branch in the trace.
        """
        visitor = self._scan_steps(node_id)
        return visitor.steps if visitor is not None else []

    def get_step(self, step_id: str) -> SemanticNode | None:
        visitor = self._scan_steps(None)
        if visitor is None:
            return None
        return visitor.get_step(step_id)

    def union(self, other: PipelineGraph | PipelineNodeGraphBuilder, *, reset_status: bool = False) -> PipelineGraph:
        """Splice a newer scan of this run onto this graph.

        See stagegraph.core.graph.union_graphs for the stitching rules.
        """
        that = other.graph if isinstance(other, PipelineNodeGraphBuilder) else other
        return union_graphs(self.graph, that, reset_status=reset_status)

    def _scan_steps(self, node_id: str | None) -> PipelineStepVisitor | None:
        execution = self._run.execution
        if execution is None:
            self._log.debug("execution_unavailable", node_id=node_id)
            return None

        target = None
        if node_id is not None:
            target = execution.find_first_match(
                lambda n: n.node_id == node_id and (is_stage(n) or is_parallel_branch(n))
            )
            if target is None:
                self._log.debug("step_scope_not_found", node_id=node_id)
                return None

        visitor = PipelineStepVisitor(self._run, target, computer=self._computer, clock=self._clock)
        self._scanner.visit_simple_chunks(execution, visitor)
        return visitor
