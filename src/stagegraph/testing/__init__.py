"""Test support: build execution traces and replay scanner events.

The real trace scanner belongs to the execution engine. These helpers let
tests (and consumers embedding the builder) drive the visitors with the same
event protocol without an engine.
"""

from stagegraph.testing.scanner import ScannerEvent, ScriptedScanner
from stagegraph.testing.trace import TraceFactory

__all__ = [
    "ScannerEvent",
    "ScriptedScanner",
    "TraceFactory",
]
