# aad_engine/core/graph.py
from __future__ import annotations
from typing import Iterator, List, Optional
from contextlib import contextmanager


class Graph:
    """
    Arena owning the backward Nodes of one recorded computation.

    Nodes are appended in construction order. Releasing the graph drops the
    saved buffers of every node at once; any later backward pass through one
    of them fails with GraphAlreadyFreedError.
    """
    def __init__(self):
        self.nodes: List = []

    def __len__(self):
        return len(self.nodes)

    def __iter__(self) -> Iterator:
        return iter(self.nodes)

    def reset(self):
        self.nodes.clear()

    def add_node(self, node):
        """Append ``node`` to the arena and return it."""
        self.nodes.append(node)
        return node

    def release(self):
        for node in self.nodes:
            node.release_variables()

    @property
    def released(self) -> bool:
        return bool(self.nodes) and all(node.released for node in self.nodes)


# Graph that newly constructed Nodes register with. None: no registration.
current_graph: Optional[Graph] = None

@contextmanager
def use_graph(graph: Optional[Graph] = None):
    """
    Context manager collecting every Node built inside the block:
        with use_graph() as g:
            ... build backward nodes ...
        print(len(g))
    """
    global current_graph
    prev = current_graph
    try:
        current_graph = graph if graph is not None else Graph()
        yield current_graph
    finally:
        current_graph = prev
