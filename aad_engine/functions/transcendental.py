# aad_engine/functions/transcendental.py
import numpy as np

from ..core.edge import collect_next_edges
from ..core.node import Node
from ._utils import grad_data, primal, wrap


class _UnaryBackward(Node):
    def __init__(self, x):
        super().__init__(collect_next_edges(x), num_inputs=1)
        self.save_for_backward(self.saved_value(primal(x)))

    def saved_value(self, xv):
        return xv

    def apply(self, grads, create_graph):
        g = grad_data(grads[0])
        if g is None:
            return [None]
        (s,) = self.saved_tensors
        return [wrap(g * self.local_partial(s))]


class ExpBackward(_UnaryBackward):
    # d/dx exp(x) = exp(x): keep the result, not the input
    def saved_value(self, xv):
        return np.exp(xv)

    def local_partial(self, ex):
        return ex


class LogBackward(_UnaryBackward):
    def local_partial(self, xv):
        return 1.0 / xv


class SqrtBackward(_UnaryBackward):
    def saved_value(self, xv):
        return np.sqrt(xv)

    def local_partial(self, s):
        return 0.5 / s


class ErfBackward(_UnaryBackward):
    """d/dx erf(x) = (2/√π) * e^(-x²)"""

    def local_partial(self, xv):
        return (2.0 / np.sqrt(np.pi)) * np.exp(-xv ** 2)
