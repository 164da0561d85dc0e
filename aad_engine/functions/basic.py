# aad_engine/functions/basic.py
from typing import Callable, Optional, Sequence

from ..core.edge import Edge, collect_next_edges
from ..core.node import Node


class Lambda(Node):
    """
    Node whose backward is a plain Python callable.

        node = Lambda(lambda grads: [grads[0] * 3.0], [x.gradient_edge()])

    ``fn`` receives the list of incoming gradients (``None`` for absent ones)
    and returns one gradient per entry of ``next_edges``.
    """

    def __init__(self, fn: Callable, next_edges: Sequence[Optional[Edge]] = (),
                 *, num_inputs: int = 1, name: Optional[str] = None):
        super().__init__(next_edges, num_inputs=num_inputs)
        self.fn = fn
        self._name = name

    def name(self) -> str:
        return self._name or super().name()

    def apply(self, grads, create_graph):
        return self.fn(grads)


class Identity(Node):
    """y = x. Passes the gradient through unchanged."""

    def __init__(self, x):
        super().__init__(collect_next_edges(x), num_inputs=1)

    def apply(self, grads, create_graph):
        return [grads[0]]
