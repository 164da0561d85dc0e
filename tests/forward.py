"""
Forward helpers for the tests: compute a value with numpy and attach the
matching backward node, the way a frontend would record a graph.
"""

import numpy as np
from scipy.special import erf as scipy_erf
from scipy.stats import norm

from aad_engine import Variable
from aad_engine.functions import (
    AddBackward, SubBackward, MulBackward, DivBackward, PowBackward, NegBackward,
    SumBackward, ExpBackward, LogBackward, SqrtBackward, ErfBackward, NormCdfBackward,
)


def leaf(val, name=None):
    return Variable(np.asarray(val, dtype=np.float64), requires_grad=True, name=name)


def _v(x):
    return x.data if isinstance(x, Variable) else np.asarray(x, dtype=np.float64)


def _record(data, node):
    return Variable(np.asarray(data), grad_fn=node)


def add(a, b): return _record(_v(a) + _v(b), AddBackward(a, b))
def sub(a, b): return _record(_v(a) - _v(b), SubBackward(a, b))
def mul(a, b): return _record(_v(a) * _v(b), MulBackward(a, b))
def div(a, b): return _record(_v(a) / _v(b), DivBackward(a, b))
def pow_(a, b): return _record(_v(a) ** _v(b), PowBackward(a, b))
def neg(a): return _record(-_v(a), NegBackward(a))
def sum_(a): return _record(np.sum(_v(a)), SumBackward(a))
def exp(a): return _record(np.exp(_v(a)), ExpBackward(a))
def log(a): return _record(np.log(_v(a)), LogBackward(a))
def sqrt(a): return _record(np.sqrt(_v(a)), SqrtBackward(a))
def erf(a): return _record(scipy_erf(_v(a)), ErfBackward(a))
def norm_cdf(a): return _record(norm.cdf(_v(a)), NormCdfBackward(a))


BINARY = {"add": add, "sub": sub, "mul": mul}


def build_dag(leaf_values, plan):
    """
    Build a random-DAG computation from a plan of (op, i, j) steps over the
    list [leaves..., intermediates...]; the output is the sum of the last
    three intermediates. Returns (leaves, output).
    """
    leaves = [leaf(v, name=f"x{k}") for k, v in enumerate(leaf_values)]
    pool = list(leaves)
    for op, i, j in plan:
        pool.append(BINARY[op](pool[i], pool[j]))
    out = pool[-1]
    for extra in pool[-3:-1]:
        out = add(out, extra)
    return leaves, out


def random_plan(rng, n_leaves, n_steps):
    plan = []
    for k in range(n_steps):
        size = n_leaves + k
        op = rng.choice(sorted(BINARY))
        plan.append((op, int(rng.integers(size)), int(rng.integers(size))))
    return plan
