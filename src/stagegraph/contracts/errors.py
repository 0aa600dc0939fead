"""Exceptions raised across the graph-building boundary.

Anomalies in the trace itself degrade to "best graph possible" and are
logged rather than raised. These exceptions exist for integrity checks the
caller asks for explicitly.
"""


class GraphInvariantError(ValueError):
    """Raised by PipelineGraph.validate() when a structural invariant fails."""

    pass


class ScannerProtocolError(RuntimeError):
    """Raised when the trace scanner delivers events that cannot be paired.

    Only raised when strict_scanner is enabled in StageGraphSettings; the
    default behaviour logs the violation and skips the affected construct.
    """

    def __init__(self, message: str, *, nested_branches: int, branch_ends: int) -> None:
        super().__init__(message)
        self.nested_branches = nested_branches
        self.branch_ends = branch_ends
