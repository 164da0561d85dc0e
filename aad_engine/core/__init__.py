# aad_engine/core/__init__.py

"""
Core public API of the autograd engine.

Exports:
    Value, Kind     : Tagged union carrying arguments across node boundaries.
    Variable        : Tensor reference with requires_grad / grad_fn / grad.
    Edge, Node      : Backward graph structure.
    Graph, use_graph: Arena collecting the nodes of one recorded graph.
    Engine          : Runs backward passes over the graph.
    backward, grad  : Entry points seeding an output with ones.
    value           : Convenience: extract the numeric payload.
"""

from .errors import (
    AutogradError,
    ArgumentMismatch,
    TypeMismatch,
    GraphIntegrityError,
    GraphAlreadyFreedError,
)
from .variable import Variable
from .value import Value, Kind
from .edge import Edge, collect_next_edges
from .node import Node
from .graph import Graph, use_graph
from .engine import (
    Engine,
    get_default_engine,
    set_default_engine,
    reset_default_engine,
    use_engine,
)
from .seeds import backward, grad, value

__all__ = [
    "AutogradError", "ArgumentMismatch", "TypeMismatch",
    "GraphIntegrityError", "GraphAlreadyFreedError",
    "Variable", "Value", "Kind",
    "Edge", "collect_next_edges", "Node",
    "Graph", "use_graph",
    "Engine", "get_default_engine", "set_default_engine", "reset_default_engine", "use_engine",
    "backward", "grad", "value",
]
