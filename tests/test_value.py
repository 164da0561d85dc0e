"""Tests for the Value tagged union."""

import numpy as np
import pytest

from aad_engine import Kind, TypeMismatch, Value, Variable

PREDICATES = ["is_float", "is_double", "is_bool", "is_int32", "is_int64",
              "is_string", "is_variable", "is_list", "is_dict"]


def active_predicates(v):
    return [p for p in PREDICATES if getattr(v, p)()]


class TestInference:
    @pytest.mark.parametrize("payload, kind", [
        (np.float32(1.5), Kind.FLOAT),
        (1.5, Kind.DOUBLE),
        (np.float64(1.5), Kind.DOUBLE),
        (True, Kind.BOOL),
        (np.bool_(False), Kind.BOOL),
        (np.int32(7), Kind.INT32),
        (7, Kind.INT64),
        (np.int64(7), Kind.INT64),
        ("hello", Kind.STRING),
        (Variable(1.0), Kind.VARIABLE),
        (np.zeros(3), Kind.VARIABLE),
        ([1, 2], Kind.LIST),
        ((1, 2), Kind.LIST),
        ({"a": 1}, Kind.DICT),
    ])
    def test_kind(self, payload, kind):
        assert Value(payload).kind is kind

    def test_exactly_one_predicate(self):
        samples = [np.float32(1), 1.0, True, np.int32(1), 1, "s",
                   Variable(1.0), [1], {"k": 1}]
        seen = set()
        for payload in samples:
            active = active_predicates(Value(payload))
            assert len(active) == 1
            seen.add(active[0])
        assert seen == set(PREDICATES)

    def test_unsupported_payload(self):
        with pytest.raises(TypeMismatch):
            Value(object())
        with pytest.raises(TypeMismatch):
            Value(None)

    def test_int64_overflow(self):
        with pytest.raises(TypeMismatch):
            Value(2 ** 63)

    def test_copy_constructor(self):
        a = Value("x")
        b = Value(a)
        assert b == a and b.is_string()

    def test_copy_constructor_owns_containers(self):
        a = Value([1, 2])
        b = Value(a)
        b.get_list().append(Value(3))
        assert len(a.get_list()) == 2

        d = Value({"k": 1})
        e = Value(d)
        e.get_dict()["j"] = Value(2)
        assert list(d.get_dict()) == ["k"]

    def test_copy_constructor_move_shares(self):
        a = Value([1, 2])
        assert Value(a, copy=False).get_list() is a.get_list()


class TestExplicitConstructors:
    def test_float32(self):
        v = Value.float32(0.1)
        assert v.is_float()
        assert v.get_float() == np.float32(0.1)

    def test_float64_from_int(self):
        assert Value.float64(3).get_double() == 3.0

    def test_int32_range(self):
        assert Value.int32(2 ** 31 - 1).get_int32() == 2 ** 31 - 1
        with pytest.raises(TypeMismatch):
            Value.int32(2 ** 31)

    def test_float32_range(self):
        assert Value.float32(-3e38).get_float() == np.float32(-3e38)
        assert np.isinf(Value.float32(float("inf")).get_float())
        with pytest.raises(TypeMismatch):
            Value.float32(1e300)
        with pytest.raises(TypeMismatch):
            Value.float32(-1e39)

    def test_no_coercion(self):
        with pytest.raises(TypeMismatch):
            Value.int64(1.5)
        with pytest.raises(TypeMismatch):
            Value.int32(True)
        with pytest.raises(TypeMismatch):
            Value.boolean(1)
        with pytest.raises(TypeMismatch):
            Value.string(3)
        with pytest.raises(TypeMismatch):
            Value.float64("1.0")

    def test_variable_from_array(self):
        arr = np.ones(2)
        v = Value.variable(arr)
        assert v.is_variable()
        assert v.get().data is arr
        assert v.get().requires_grad is False

    def test_variable_from_array_requires_grad(self):
        v = Value.variable(np.ones(2), requires_grad=True)
        assert v.get().requires_grad is True


class TestAccessors:
    def test_wrong_accessor(self):
        v = Value(3)
        assert v.get_int64() == 3
        for getter in ["get_float", "get_double", "get_bool", "get_int32",
                       "get_string", "get", "get_list", "get_dict"]:
            with pytest.raises(TypeMismatch):
                getattr(v, getter)()

    def test_variable_delegates(self):
        var = Variable(np.arange(3.0), requires_grad=True)
        v = Value(var)
        assert v.data() is var.data
        assert v.defined()
        assert v.type() == np.float64
        detached = v.detach()
        assert detached.data is var.data
        assert not detached.requires_grad

    def test_undefined_variable(self):
        assert not Value(Variable()).defined()

    @pytest.mark.parametrize("method", ["data", "defined", "detach", "type"])
    def test_delegates_on_non_variable(self, method):
        with pytest.raises(TypeMismatch):
            getattr(Value("nope"), method)()

    def test_ndarray_defaults_to_no_grad(self):
        assert Value(np.ones(2)).get().requires_grad is False


class TestContainers:
    def test_list_round_trip(self):
        items = [Value(1), Value("a"), Value(2.5)]
        v = Value(items)
        assert v.get_list() == items

    def test_dict_round_trip(self):
        items = {"lr": Value(0.1), "name": Value("sgd")}
        v = Value(items)
        assert v.get_dict() == items

    def test_copy_is_default(self):
        items = [Value(1)]
        v = Value(items)
        items.append(Value(2))
        assert len(v.get_list()) == 1

    def test_move_adopts_container(self):
        items = [Value(1)]
        v = Value.list(items, copy=False)
        assert v.get_list() is items

    def test_move_dict(self):
        items = {"a": 1}
        v = Value.dict(items, copy=False)
        assert v.get_dict() is items
        assert items["a"] == Value(1)

    def test_literal_list_of_variables(self):
        x, y = Variable(1.0), Variable(2.0)
        v = Value([x, y])
        assert [item.get() for item in v.get_list()] == [x, y]
        assert all(item.is_variable() for item in v.get_list())

    def test_nested(self):
        x = Variable(np.ones(2))
        v = Value({"params": [x, {"scale": 2.0}], "steps": 10})
        params = v.get_dict()["params"].get_list()
        assert params[0].get() is x
        assert params[1].get_dict()["scale"].get_double() == 2.0
        assert v.get_dict()["steps"].get_int64() == 10

    def test_non_string_keys(self):
        with pytest.raises(TypeMismatch):
            Value({1: "a"})

    def test_to_python(self):
        x = Variable(np.ones(2))
        out = Value({"a": [1, np.float32(0.5)], "x": x}).to_python()
        assert out["a"] == [1, 0.5]
        assert out["x"] is x.data


class TestEquality:
    def test_same_kind_and_payload(self):
        assert Value(1) == Value(1)
        assert Value(1) != Value(2)

    def test_kind_matters(self):
        assert Value.int32(1) != Value.int64(1)
        assert Value(1.0) != Value(1)

    def test_variables_by_identity(self):
        x = Variable(np.ones(2))
        assert Value(x) == Value(x)
        assert Value(x) != Value(Variable(np.ones(2)))

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(Value(1))
