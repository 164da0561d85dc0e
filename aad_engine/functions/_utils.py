# aad_engine/functions/_utils.py
import numpy as np

from ..core.variable import Variable


def primal(x):
    """Forward value of a Variable, or the value itself for constants."""
    if isinstance(x, Variable):
        return x.data
    return np.asarray(x, dtype=np.float64)


def grad_data(grad):
    """numpy payload of an optional incoming gradient."""
    return None if grad is None else grad.data


def sum_to(grad, shape):
    """
    Reduce a broadcast gradient back to ``shape``: sum over the leading axes
    numpy added and over axes that were 1 in the forward input.
    """
    if grad is None or np.shape(grad) == tuple(shape):
        return grad
    extra = np.ndim(grad) - len(shape)
    if extra > 0:
        grad = np.sum(grad, axis=tuple(range(extra)))
    axes = tuple(i for i, s in enumerate(shape) if s == 1 and np.shape(grad)[i] != 1)
    if axes:
        grad = np.sum(grad, axis=axes, keepdims=True)
    return np.reshape(grad, shape)


def wrap(g):
    return None if g is None else Variable(np.asarray(g))
