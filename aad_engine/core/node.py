# aad_engine/core/node.py
from __future__ import annotations
import itertools
import threading
from typing import List, Optional, Sequence, Tuple

from . import graph as graph_mod  # module access so use_graph() swaps are seen
from .edge import Edge
from .errors import GraphAlreadyFreedError, GraphIntegrityError

_sequence_nr = itertools.count()


class Node:
    """
    Backward function of one forward operation.

    A Node collects ``num_inputs`` incoming gradients (one per input slot) and
    maps them to ``num_outputs`` outgoing gradients, one per entry of
    ``next_edges``. A ``None`` entry in ``next_edges`` means the matching output
    has no downstream consumer and is discarded.

    Attributes
    ----------
    id : int
        Process-unique sequence number, increasing in construction order.
    num_inputs : int
        Input arity: how many gradient slots must be filled before execution.
    next_edges : Tuple[Optional[Edge], ...]
        Where each computed output gradient is forwarded.

    Subclasses implement ``apply``. Buffers captured during the forward pass
    go through ``save_for_backward`` so that the engine can release them.
    """

    def __init__(self, next_edges: Sequence[Optional[Edge]] = (), *, num_inputs: int = 1):
        if num_inputs < 0:
            raise ValueError(f"num_inputs must be >= 0, got {num_inputs}")
        self.id = next(_sequence_nr)
        self.num_inputs = num_inputs
        self.next_edges: Tuple[Optional[Edge], ...] = tuple(next_edges)
        self._saved: Tuple = ()
        self._released = False
        self._lock = threading.Lock()

        active = graph_mod.current_graph
        if active is not None:
            active.add_node(self)

    def __repr__(self):
        return f"{self.name()}(id={self.id}, inputs={self.num_inputs}, outputs={self.num_outputs})"

    def name(self) -> str:
        return type(self).__name__

    @property
    def num_outputs(self) -> int:
        return len(self.next_edges)

    @property
    def is_executable(self) -> bool:
        return self.num_outputs > 0

    @property
    def is_leaf(self) -> bool:
        return not self.is_executable

    # ------------------------------------------------------------------ buffers
    def save_for_backward(self, *arrays):
        """Keep forward values needed by ``apply``."""
        self._saved = tuple(arrays)

    @property
    def saved_tensors(self) -> Tuple:
        if self._released:
            raise GraphAlreadyFreedError(
                f"Trying to backward through {self.name()} a second time, but its saved "
                f"buffers have already been freed. Pass retain_graph=True to the first "
                f"backward call to keep them."
            )
        return self._saved

    @property
    def released(self) -> bool:
        return self._released

    def release_variables(self):
        self._saved = ()
        self._released = True

    # ------------------------------------------------------------------ execution
    def apply(self, grads: List, create_graph: bool) -> Sequence:
        raise NotImplementedError

    def __call__(self, grads: List, *, create_graph: bool = False, release: bool = False) -> List:
        """
        Run ``apply`` once. With ``release`` the saved buffers are dropped right
        after, under the same lock, so a concurrent pass sees either the intact
        node or a released one.
        """
        if len(grads) != self.num_inputs:
            raise GraphIntegrityError(
                f"{self.name()} expects {self.num_inputs} gradient(s), got {len(grads)}"
            )
        with self._lock:
            if self._released:
                raise GraphAlreadyFreedError(
                    f"Trying to backward through {self.name()} a second time after its "
                    f"graph was freed. Pass retain_graph=True to the first backward call."
                )
            outputs = list(self.apply(list(grads), create_graph))
            if release:
                self.release_variables()
        if len(outputs) != self.num_outputs:
            raise GraphIntegrityError(
                f"{self.name()} returned {len(outputs)} gradient(s) for "
                f"{self.num_outputs} output edge(s)"
            )
        return outputs

    def check_grads(self, grads: List):
        """Leaf hook, called as soon as all of a leaf's gradients have arrived."""
        return None

    def accumulate(self, grads: List):
        """Leaf hook, called once a pass has completed successfully. No-op here."""
        return None
