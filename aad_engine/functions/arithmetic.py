# aad_engine/functions/arithmetic.py
"""
Backward nodes of the elementary arithmetic operations.

Each node is built from the forward inputs (Variables or constants): it takes
its output edges from them and saves the forward values it needs. Local
partials follow the usual rules, e.g. for y = a * b:
    dL/da = g * b,   dL/db = g * a
A missing incoming gradient (None) yields missing outputs.
"""
import numpy as np

from ..core.edge import collect_next_edges
from ..core.node import Node
from ._utils import grad_data, primal, sum_to, wrap


class _BinaryBackward(Node):
    def __init__(self, a, b):
        super().__init__(collect_next_edges(a, b), num_inputs=1)
        av, bv = primal(a), primal(b)
        self.save_for_backward(av, bv)
        self.shapes = (np.shape(av), np.shape(bv))

    def apply(self, grads, create_graph):
        g = grad_data(grads[0])
        if g is None:
            return [None, None]
        a, b = self.saved_tensors
        ga, gb = self.partials(g, a, b)
        return [wrap(sum_to(ga, self.shapes[0])), wrap(sum_to(gb, self.shapes[1]))]

    def partials(self, g, a, b):
        raise NotImplementedError


class AddBackward(_BinaryBackward):
    def partials(self, g, a, b):
        return g, g


class SubBackward(_BinaryBackward):
    def partials(self, g, a, b):
        return g, -g


class MulBackward(_BinaryBackward):
    def partials(self, g, a, b):
        return g * b, g * a


class DivBackward(_BinaryBackward):
    def partials(self, g, a, b):
        return g / b, -g * a / np.square(b)


class PowBackward(_BinaryBackward):
    """
    y = a ** b
      dy/da = b * a^(b-1)
      dy/db = a^b * log(a)     (taken as 0 where a <= 0)
    """
    def partials(self, g, a, b):
        ga = g * b * a ** (b - 1.0)
        with np.errstate(divide="ignore", invalid="ignore"):
            log_a = np.where(a > 0, np.log(np.where(a > 0, a, 1.0)), 0.0)
        gb = g * (a ** b) * log_a
        return ga, gb


class NegBackward(Node):
    def __init__(self, a):
        super().__init__(collect_next_edges(a), num_inputs=1)

    def apply(self, grads, create_graph):
        g = grad_data(grads[0])
        return [None if g is None else wrap(-g)]


class SumBackward(Node):
    """y = sum(a). The scalar gradient is broadcast back to a's shape."""

    def __init__(self, a):
        super().__init__(collect_next_edges(a), num_inputs=1)
        self.shape = np.shape(primal(a))

    def apply(self, grads, create_graph):
        g = grad_data(grads[0])
        if g is None:
            return [None]
        return [wrap(np.broadcast_to(g, self.shape).copy())]
