"""The thread-pool scheduler must produce the same results as the sequential one."""

import numpy as np
import pytest

from aad_engine import Edge, Engine, EngineConfig, GraphIntegrityError, Variable
from aad_engine.functions import Lambda

from forward import add, build_dag, exp, leaf, mul, random_plan


def ones():
    return Variable(np.array(1.0))


@pytest.fixture(params=[1, 2, 8])
def threaded(request):
    return Engine(EngineConfig(num_workers=request.param))


class TestThreadedEngine:
    def test_repr(self):
        assert repr(Engine(EngineConfig(num_workers=3))) == "Engine(num_workers=3)"

    def test_simple_graph(self, threaded):
        x, y = leaf(2.0), leaf(3.0)
        z = add(mul(x, y), exp(y))
        threaded.execute([z.gradient_edge()], [ones()])
        np.testing.assert_allclose(x.grad.data, 3.0)
        np.testing.assert_allclose(y.grad.data, 2.0 + np.exp(3.0))

    @pytest.mark.parametrize("seed", range(5))
    def test_random_dag_matches_sequential(self, threaded, seed):
        rng = np.random.default_rng(seed)
        values = rng.uniform(0.8, 1.1, size=3)
        plan = random_plan(rng, 3, 12)

        results = []
        for engine in (Engine(), threaded):
            leaves, out = build_dag(values, plan)
            engine.execute([out.gradient_edge()], [ones()])
            results.append([0.0 if x.grad is None else float(x.grad.data) for x in leaves])
        scale = max(1.0, float(np.max(np.abs(results[0]))))
        np.testing.assert_allclose(results[1], results[0], rtol=1e-9, atol=1e-9 * scale)

    def test_wide_fan_out(self, threaded):
        x = leaf(1.5)
        terms = [mul(x, float(k)) for k in range(50)]
        out = terms[0]
        for t in terms[1:]:
            out = add(out, t)
        threaded.execute([out.gradient_edge()], [ones()])
        np.testing.assert_allclose(x.grad.data, sum(range(50)))

    def test_node_error_propagates(self, threaded):
        x = leaf(1.0)

        def boom(grads):
            raise ValueError("boom")

        node = Lambda(boom, [x.gradient_edge()])
        with pytest.raises(ValueError, match="boom"):
            threaded.execute([Edge(node, 0)], [ones()])
        assert x.grad is None

    def test_cycle_detected(self, threaded):
        a = Lambda(lambda g: [g[0]], [None])
        b = Lambda(lambda g: [g[0]], [None])
        a.next_edges = (Edge(b, 0),)
        b.next_edges = (Edge(a, 0),)
        with pytest.raises(GraphIntegrityError):
            threaded.execute([Edge(a, 0)], [ones()])
