# aad_engine/core/variable.py
from __future__ import annotations
import numpy as np
from typing import Any, Optional


class Variable:
    """
    Tensor reference tracked by the autograd engine.

    Attributes
    ----------
    data : np.ndarray | None
        Shared data buffer. ``None`` means the variable is undefined.
    requires_grad : bool
        Whether gradients should flow into this variable. Always True when
        ``grad_fn`` is set.
    grad_fn : Node | None
        The Node computing this variable's gradient. Absent for leaves.
    output_nr : int
        Which output slot of ``grad_fn`` this variable corresponds to.
    grad : Variable | None
        Gradient accumulated by backward passes (leaves only).
    name : Optional[str]
        Optional debug/pretty-print name.
    """

    def __init__(self, data: Any = None, *, requires_grad: bool = False,
                 grad_fn=None, output_nr: int = 0, name: Optional[str] = None):
        # Arrays are shared, not copied. Plain numbers and sequences become
        # float64 like every other primal value in the package.
        if data is None or isinstance(data, np.ndarray):
            self.data = data
        elif isinstance(data, np.generic):
            # numpy scalars (e.g. results of 0-d arithmetic) keep their dtype
            self.data = np.asarray(data)
        elif isinstance(data, (int, float, list, tuple)) and not isinstance(data, bool):
            self.data = np.asarray(data, dtype=np.float64)
        else:
            raise TypeError(
                f"Variable only accepts numeric types (int, float, list, tuple, ndarray), "
                f"but got {type(data)}"
            )

        self.grad_fn = grad_fn
        self.output_nr = output_nr
        self.requires_grad = bool(requires_grad) or grad_fn is not None
        self.grad: Optional[Variable] = None
        self.name = name
        self._grad_accumulator = None

    def __repr__(self):
        if self.grad_fn is not None:
            rg = f"grad_fn={self.grad_fn.name()}"
        else:
            rg = "req" if self.requires_grad else "const"
        return f"Variable({self.data!r}, {rg}, name={self.name!r})"

    @property
    def is_leaf(self) -> bool:
        return self.grad_fn is None

    @property
    def shape(self):
        return None if self.data is None else self.data.shape

    def defined(self) -> bool:
        return self.data is not None

    def type(self):
        """numpy dtype of the underlying buffer (None when undefined)."""
        return None if self.data is None else self.data.dtype

    def detach(self) -> "Variable":
        """A new leaf sharing this variable's buffer, cut off from the graph."""
        return Variable(self.data, requires_grad=False, name=self.name)

    def zero_grad(self):
        self.grad = None

    def grad_accumulator(self):
        """
        The AccumulateGrad node that collects gradients for this leaf.
        Created lazily and cached; None for non-leaves and constants.
        """
        if self.grad_fn is not None or not self.requires_grad:
            return None
        if self._grad_accumulator is None:
            from ..functions.accumulate_grad import AccumulateGrad  # local import to avoid cycles
            self._grad_accumulator = AccumulateGrad(self)
        return self._grad_accumulator

    def gradient_edge(self):
        """
        Edge through which gradients for this variable enter the graph:
          - non-leaf : (grad_fn, output_nr)
          - leaf     : (AccumulateGrad, 0)
          - constant : None
        """
        from .edge import Edge
        if self.grad_fn is not None:
            return Edge(self.grad_fn, self.output_nr)
        acc = self.grad_accumulator()
        if acc is None:
            return None
        return Edge(acc, 0)
