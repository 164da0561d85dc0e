# aad_engine/core/seeds.py

#-----------------------------------------------------------------------------
# We "plant" a seed (dy/dy = 1) at the output and let the engine grow
# gradients backwards through the recorded graph.
#-----------------------------------------------------------------------------
from __future__ import annotations
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from .engine import Engine, get_default_engine
from .errors import ArgumentMismatch, TypeMismatch
from .value import Value
from .variable import Variable


def value(x: Any) -> Any:
    """Return the numeric payload of a Variable or VARIABLE Value; pass anything else through."""
    if isinstance(x, Value):
        return x.data() if x.is_variable() else x.to_python()
    return x.data if isinstance(x, Variable) else x


def _as_variable(x: Any, what: str) -> Variable:
    if isinstance(x, Variable):
        return x
    if isinstance(x, Value):
        return x.get()
    if isinstance(x, np.ndarray):
        # A bare array has no history; it only makes sense as a leaf.
        return Variable(x)
    raise TypeMismatch(f"{what} must be a Variable, ndarray or Value, got {type(x).__name__}")


def _root_edge(output: Variable, i: int = 0):
    edge = output.gradient_edge()
    if edge is None:
        raise ArgumentMismatch(
            f"output {i} does not require grad and has no grad_fn; nothing to differentiate"
        )
    return edge


def backward(output: Union[Variable, Value, np.ndarray],
             retain_graph: bool = False,
             engine: Optional[Engine] = None) -> None:
    """
    Backpropagate from a single output, seeding it with ones.

    Gradients are accumulated into ``.grad`` of every leaf Variable that
    requires grad. ``retain_graph`` keeps the graph's buffers so that
    ``backward`` can be called on it again.
    """
    out = _as_variable(output, "output")
    edge = _root_edge(out)
    seed = Variable(np.ones_like(out.data), requires_grad=False)
    engine = engine if engine is not None else get_default_engine()
    # create_graph stays False: no double backward through this entry point
    engine.execute([edge], [Value(seed)], retain_graph, False)


def grad(outputs: Union[Variable, Sequence[Variable]],
         inputs: Union[Variable, Sequence[Variable]],
         grad_outputs: Optional[Sequence[Any]] = None,
         retain_graph: bool = False,
         create_graph: bool = False,
         engine: Optional[Engine] = None) -> List[Optional[np.ndarray]]:
    """
    Gradients of ``outputs`` w.r.t. ``inputs``, returned instead of accumulated.

    Leaves' ``.grad`` are left untouched. Inputs the outputs do not depend on
    get ``None``.

    Example
    -------
    gx, gy = grad(z, [x, y])
    """
    outs = [outputs] if isinstance(outputs, (Variable, Value)) else list(outputs)
    ins = [inputs] if isinstance(inputs, (Variable, Value)) else list(inputs)
    outs = [_as_variable(o, f"output {i}") for i, o in enumerate(outs)]
    ins = [_as_variable(x, f"input {i}") for i, x in enumerate(ins)]

    if grad_outputs is None:
        seeds = [Variable(np.ones_like(o.data)) for o in outs]
    else:
        seeds = list(grad_outputs)
        if len(seeds) != len(outs):
            raise ArgumentMismatch(
                f"grad() got {len(outs)} output(s) but {len(seeds)} grad_output(s)"
            )
    edges = [_root_edge(o, i) for i, o in enumerate(outs)]
    input_edges = [x.gradient_edge() for x in ins]

    engine = engine if engine is not None else get_default_engine()
    results = engine.execute(edges, seeds, retain_graph, create_graph,
                             inputs=input_edges, accumulate_grad=False)
    return [r.data() if r.defined() else None for r in results]
