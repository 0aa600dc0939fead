"""Chunk bookkeeping shared by the graph and step visitors.

The scanner reports a chunk's end first and its start last. StandardChunkVisitor
collects the boundary nodes in a MemoryChunk as they arrive and hands the
completed chunk to handle_chunk_done() when the start is reached, then resets
it for the next (earlier) chunk.
"""

from __future__ import annotations

from dataclasses import dataclass

from stagegraph.contracts.trace import ExecutionNode


@dataclass
class MemoryChunk:
    """Boundary nodes and accumulated pause time of the chunk being scanned.

    Attributes:
        first_node: Start of the chunk (set when the scan reaches it)
        last_node: End of the chunk (None while the chunk is still open)
        node_before: Node immediately before first_node
        node_after: Node immediately after last_node
        pause_time_millis: Pause time summed over the chunk's atoms
    """

    first_node: ExecutionNode | None = None
    last_node: ExecutionNode | None = None
    node_before: ExecutionNode | None = None
    node_after: ExecutionNode | None = None
    pause_time_millis: int = 0

    def reset(self) -> None:
        self.first_node = None
        self.last_node = None
        self.node_before = None
        self.node_after = None
        self.pause_time_millis = 0


class StandardChunkVisitor:
    """ChunkVisitor base that tracks the current chunk.

    Subclasses override handle_chunk_done() to act on each finished chunk and
    reset_chunk() to clear their own per-chunk state. The parallel and atom
    callbacks are no-ops here.
    """

    def __init__(self) -> None:
        self.chunk = MemoryChunk()

    def handle_chunk_done(self, chunk: MemoryChunk) -> None:
        pass

    def reset_chunk(self, chunk: MemoryChunk) -> None:
        chunk.reset()

    def chunk_start(self, start_node: ExecutionNode, before_block: ExecutionNode | None) -> None:
        self.chunk.node_before = before_block
        self.chunk.first_node = start_node
        self.handle_chunk_done(self.chunk)
        self.reset_chunk(self.chunk)

    def chunk_end(self, end_node: ExecutionNode, after_block: ExecutionNode | None) -> None:
        self.chunk.last_node = end_node
        self.chunk.node_after = after_block

    def parallel_start(self, parallel_start_node: ExecutionNode, branch_node: ExecutionNode) -> None:
        pass

    def parallel_end(self, parallel_start_node: ExecutionNode, parallel_end_node: ExecutionNode) -> None:
        pass

    def parallel_branch_start(self, parallel_start_node: ExecutionNode, branch_start_node: ExecutionNode) -> None:
        pass

    def parallel_branch_end(self, parallel_start_node: ExecutionNode, branch_end_node: ExecutionNode | None) -> None:
        pass

    def atom_node(self, before: ExecutionNode | None, atom_node: ExecutionNode, after: ExecutionNode | None) -> None:
        pass
