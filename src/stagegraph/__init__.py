"""
Stagegraph: human-presentable stage graphs from pipeline execution traces.

Walks the fine-grained, append-only trace a pipeline engine writes while a
run progresses and summarizes it into a compact DAG of stages, parallel
branches and steps that a polling client can render and incrementally extend.
"""

__version__ = "0.1.0"
