# aad_engine/core/edge.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import GraphIntegrityError


@dataclass(frozen=True, eq=False)
class Edge:
    """
    Directed link into one input slot of a backward Node.

    Attributes
    ----------
    function : Node
        The Node that receives the gradient.
    input_nr : int
        Which of ``function``'s input slots the gradient is delivered to.

    An Edge holds a strong reference to ``function``: edges keep their target
    nodes alive, so a graph lives as long as any of its output Variables.
    """
    function: Any
    input_nr: int

    def __post_init__(self):
        if not 0 <= self.input_nr < self.function.num_inputs:
            raise GraphIntegrityError(
                f"Edge into {self.function.name()} addresses input slot {self.input_nr}, "
                f"but the node only has {self.function.num_inputs} input(s)"
            )

    # Nodes hash by identity; two edges are equal when they address the same slot.
    def __hash__(self):
        return hash((id(self.function), self.input_nr))

    def __eq__(self, other):
        if not isinstance(other, Edge):
            return NotImplemented
        return self.function is other.function and self.input_nr == other.input_nr


def collect_next_edges(*variables) -> List[Optional[Edge]]:
    """
    Gradient edges of the given forward inputs, in order.
    Anything that is not a Variable, or does not require grad, yields None.
    """
    from .variable import Variable
    edges = []
    for v in variables:
        if isinstance(v, Variable):
            edges.append(v.gradient_edge())
        else:
            edges.append(None)
    return edges
