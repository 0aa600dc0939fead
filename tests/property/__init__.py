# tests/property/__init__.py
"""Property-based tests for stagegraph.

Property-based testing validates invariants that must hold for ALL pipeline
shapes, not just the specific traces we think of.

Test categories:
- core/: Graph union invariants
- engine/: Graph visitor structure invariants
"""
