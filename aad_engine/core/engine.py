# aad_engine/core/engine.py
"""
Backward execution engine.

Given root edges and matching seed gradients, the engine finds every Node
reachable from the roots, counts how many gradients each one is waiting for,
and runs a node once all of them have arrived. Outputs are routed along the
node's ``next_edges``; contributions landing in the same input slot are summed
before the receiving node runs. Leaves (nodes without output edges) are not
run: their gathered gradients are collected and, once the whole pass has
succeeded, handed to their ``accumulate`` hook.

    engine = Engine()
    engine.execute([y.gradient_edge()], [Variable(np.ones_like(y.data))])

Scheduling is data driven: ready nodes are processed FIFO in the order they
became ready, or on a thread pool when ``EngineConfig.num_workers > 0``.
"""
from __future__ import annotations
import logging
import threading
from collections import deque
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from contextlib import contextmanager
from typing import Any, Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..config import EngineConfig
from .edge import Edge
from .errors import ArgumentMismatch, GraphIntegrityError, TypeMismatch
from .value import Value
from .variable import Variable

logger = logging.getLogger(__name__)


def _as_gradient(grad: Any, what: str) -> Optional[Variable]:
    """Normalize a seed or a node output to an optional, defined Variable."""
    if grad is None:
        return None
    if isinstance(grad, Value):
        grad = grad.get()
    elif isinstance(grad, np.ndarray):
        grad = Variable(grad)
    elif not isinstance(grad, Variable):
        raise TypeMismatch(f"{what} must be a Variable, ndarray or Value, got {type(grad).__name__}")
    return grad if grad.defined() else None


class InputBuffer:
    """Input slots of one node, filled as its predecessors deliver."""

    __slots__ = ("grads",)

    def __init__(self, size: int):
        self.grads: List[Optional[Variable]] = [None] * size

    def add(self, pos: int, grad: Optional[Variable], check_shapes: bool = True):
        if grad is None:
            return
        old = self.grads[pos]
        if old is None:
            self.grads[pos] = grad
            return
        if check_shapes and np.shape(old.data) != np.shape(grad.data):
            raise TypeMismatch(
                f"Cannot accumulate gradients of shapes {np.shape(old.data)} and "
                f"{np.shape(grad.data)} in input slot {pos}"
            )
        # Fan-in: a fresh buffer, never an in-place update of a delivered one.
        self.grads[pos] = Variable(old.data + grad.data)


class GraphTask:
    """
    Execution frame of one ``execute`` call.

    Holds the per-pass bookkeeping only: dependency counts, partially filled
    input buffers, the ready queue and the gathered leaf gradients. It owns no
    graph structure.
    """

    def __init__(self, retain_graph: bool, create_graph: bool, check_shapes: bool = True,
                 inputs: Optional[Sequence[Optional[Edge]]] = None):
        self.retain_graph = retain_graph
        self.create_graph = create_graph
        self.check_shapes = check_shapes
        self.dependencies: Dict[Any, int] = {}
        self.not_ready: Dict[Any, InputBuffer] = {}
        self.ready: Deque[Tuple[Any, List[Optional[Variable]]]] = deque()
        self.leaf_grads: Dict[Any, List[Optional[Variable]]] = {}
        self.executed = 0

        self.captures: Dict[Any, List[Edge]] = {}
        self.captured: Dict[Edge, Optional[Variable]] = {}
        for edge in inputs or ():
            if edge is not None:
                self.captures.setdefault(edge.function, []).append(edge)

    def compute_dependencies(self, root_edges: Sequence[Edge]):
        """
        Walk every node reachable from the roots and count its incoming edges
        (root edges included). The keys of ``dependencies`` are the reachable set.
        """
        deps = self.dependencies
        seen = set()
        stack = []
        for edge in root_edges:
            fn = edge.function
            deps[fn] = deps.get(fn, 0) + 1
            if fn not in seen:
                seen.add(fn)
                stack.append(fn)
        while stack:
            fn = stack.pop()
            for nxt in fn.next_edges:
                if nxt is None:
                    continue
                target = nxt.function
                deps[target] = deps.get(target, 0) + 1
                if target not in seen:
                    seen.add(target)
                    stack.append(target)

    def deliver(self, edge: Edge, grad: Optional[Variable]):
        fn = edge.function
        remaining = self.dependencies.get(fn)
        if remaining is None:
            raise GraphIntegrityError(
                f"Gradient delivered to {fn.name()} (id={fn.id}), which was not reachable "
                f"when the pass started; the graph changed during backward"
            )
        if remaining == 0:
            raise GraphIntegrityError(
                f"{fn.name()} (id={fn.id}) received more gradients than it has incoming edges"
            )
        buf = self.not_ready.get(fn)
        if buf is None:
            buf = self.not_ready[fn] = InputBuffer(fn.num_inputs)
        buf.add(edge.input_nr, grad, self.check_shapes)
        remaining -= 1
        self.dependencies[fn] = remaining
        if remaining == 0:
            del self.not_ready[fn]
            self._on_ready(fn, buf.grads)

    def _on_ready(self, fn, grads: List[Optional[Variable]]):
        for edge in self.captures.get(fn, ()):
            self.captured[edge] = grads[edge.input_nr]
        if fn.is_leaf:
            fn.check_grads(grads)
            self.leaf_grads[fn] = grads
            self.executed += 1
        else:
            self.ready.append((fn, grads))

    def route(self, node, outputs: List[Optional[Variable]]):
        for edge, grad in zip(node.next_edges, outputs):
            if edge is None:
                continue
            self.deliver(edge, grad)

    def stuck_nodes(self) -> List:
        return [fn for fn, n in self.dependencies.items() if n > 0]


def _leaf_value(grads: List[Optional[Variable]]) -> Value:
    if len(grads) == 1:
        return Value.variable(grads[0] if grads[0] is not None else Variable())
    return Value.dict({
        str(i): Value.variable(g if g is not None else Variable()) for i, g in enumerate(grads)
    })


class Engine:
    """
    Runs backward passes. One Engine can serve any number of ``execute`` calls,
    sequentially or concurrently; all per-pass state lives in a GraphTask.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config if config is not None else EngineConfig()

    def __repr__(self):
        return f"Engine(num_workers={self.config.num_workers})"

    def execute(self,
                root_edges: Sequence[Optional[Edge]],
                seed_gradients: Sequence[Any],
                retain_graph: bool = False,
                create_graph: bool = False,
                inputs: Optional[Sequence[Optional[Edge]]] = None,
                accumulate_grad: bool = True):
        """
        Run one backward pass.

        Args
        ----
        root_edges     : where propagation starts; ``None`` entries are skipped.
        seed_gradients : one gradient per root edge (Value, Variable or ndarray).
        retain_graph   : keep each node's saved buffers for another pass.
        create_graph   : forwarded verbatim to every node invocation.
        inputs         : edges whose incoming gradient should be returned.
        accumulate_grad: publish leaf gradients through ``Node.accumulate``.

        Returns
        -------
        With ``inputs``: a list of Values, one per input edge, holding the
        gradient that reached it (an undefined Variable when none did).
        Otherwise: a dict {leaf Node: Value} of the gathered leaf gradients.

        Raises
        ------
        ArgumentMismatch, TypeMismatch, GraphIntegrityError, GraphAlreadyFreedError.
        Nothing is published to leaves when a pass fails.
        """
        root_edges = list(root_edges)
        seed_gradients = list(seed_gradients)
        if len(root_edges) != len(seed_gradients):
            raise ArgumentMismatch(
                f"execute() got {len(root_edges)} root edge(s) but "
                f"{len(seed_gradients)} seed gradient(s)"
            )
        roots = []
        for i, (edge, seed) in enumerate(zip(root_edges, seed_gradients)):
            if edge is None:
                continue
            if not isinstance(edge, Edge):
                raise ArgumentMismatch(f"root edge {i} is a {type(edge).__name__}, not an Edge")
            roots.append((edge, _as_gradient(seed, f"seed gradient {i}")))

        task = GraphTask(retain_graph, create_graph, self.config.check_shapes, inputs)
        task.compute_dependencies([edge for edge, _ in roots])
        reachable = len(task.dependencies)
        logger.debug("backward: %d root(s), %d reachable node(s), retain_graph=%s",
                     len(roots), reachable, retain_graph)

        for edge, grad in roots:
            task.deliver(edge, grad)

        if self.config.num_workers > 0:
            self._run_threaded(task)
        else:
            self._run(task)

        if task.executed != reachable:
            stuck = task.stuck_nodes()
            names = ", ".join(f"{fn.name()}(id={fn.id})" for fn in stuck[:5])
            raise GraphIntegrityError(
                f"{len(stuck)} node(s) never became ready ({names}); "
                f"the graph contains a cycle or inconsistent edges"
            )

        if accumulate_grad:
            for fn, grads in task.leaf_grads.items():
                fn.accumulate(grads)
        logger.debug("backward: executed %d node(s), %d leaf gradient(s)",
                     task.executed, len(task.leaf_grads))

        if inputs is not None:
            return [
                Value.variable(task.captured.get(edge) or Variable()) if edge is not None
                else Value.variable(Variable())
                for edge in inputs
            ]
        return {fn: _leaf_value(grads) for fn, grads in task.leaf_grads.items()}

    # ------------------------------------------------------------------ scheduling
    def _evaluate(self, task: GraphTask, node, grads) -> List[Optional[Variable]]:
        logger.debug("running %s(id=%d)", node.name(), node.id)
        outputs = node(grads, create_graph=task.create_graph, release=not task.retain_graph)
        return [_as_gradient(g, f"output {i} of {node.name()}") for i, g in enumerate(outputs)]

    def _run(self, task: GraphTask):
        while task.ready:
            node, grads = task.ready.popleft()
            outputs = self._evaluate(task, node, grads)
            task.executed += 1
            task.route(node, outputs)

    def _run_threaded(self, task: GraphTask):
        # Workers only evaluate nodes. Delivery and the ready queue stay on this
        # thread, so fan-in accumulation never races.
        with ThreadPoolExecutor(max_workers=self.config.num_workers,
                                thread_name_prefix="aad-engine") as pool:
            pending = {}
            try:
                while task.ready or pending:
                    while task.ready:
                        node, grads = task.ready.popleft()
                        pending[pool.submit(self._evaluate, task, node, grads)] = node
                    done, _ = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in done:
                        node = pending.pop(fut)
                        outputs = fut.result()
                        task.executed += 1
                        task.route(node, outputs)
            except BaseException:
                for fut in pending:
                    fut.cancel()
                raise


# ---------------- process-wide default engine ---------------- #
_default_engine: Optional[Engine] = None
_default_lock = threading.Lock()


def get_default_engine() -> Engine:
    """The shared engine, created on first use from the ``AAD_ENGINE_*`` environment."""
    global _default_engine
    with _default_lock:
        if _default_engine is None:
            _default_engine = Engine(EngineConfig())
            logger.debug("created default %r", _default_engine)
        return _default_engine


def set_default_engine(engine: Engine):
    global _default_engine
    with _default_lock:
        _default_engine = engine


def reset_default_engine():
    """Drop the shared engine; the next ``get_default_engine`` builds a new one."""
    set_default_engine(None)


@contextmanager
def use_engine(engine: Optional[Engine] = None):
    """
    Context manager to temporarily swap the default engine:
        with use_engine(Engine(EngineConfig(num_workers=4))):
            backward(loss)
    """
    global _default_engine
    with _default_lock:
        prev = _default_engine
        _default_engine = engine if engine is not None else Engine()
        current = _default_engine
    try:
        yield current
    finally:
        with _default_lock:
            _default_engine = prev
