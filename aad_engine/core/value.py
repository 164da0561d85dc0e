# aad_engine/core/value.py
"""
Value: typed carrier for arguments and results crossing node boundaries.

A Value holds exactly one payload of one of the kinds below. Lists and dicts
hold Values themselves, so arbitrarily nested structures can be passed around:

    Value(3)                          -> INT64
    Value(np.float32(0.5))            -> FLOAT
    Value([x, y])                     -> LIST of VARIABLE Values
    Value({"lr": 0.1, "w": [x, y]})   -> DICT of DOUBLE / LIST

Reading a payload as the wrong kind raises TypeMismatch. Nothing here does
arithmetic.
"""
from __future__ import annotations
import enum
from typing import Any, Dict, List

import numpy as np

from .errors import TypeMismatch
from .variable import Variable

_INT32_MIN, _INT32_MAX = -(2 ** 31), 2 ** 31 - 1
_INT64_MIN, _INT64_MAX = -(2 ** 63), 2 ** 63 - 1
_FLOAT32_MAX = float(np.finfo(np.float32).max)


class Kind(enum.Enum):
    FLOAT = "float32"
    DOUBLE = "float64"
    BOOL = "bool"
    INT32 = "int32"
    INT64 = "int64"
    STRING = "string"
    VARIABLE = "variable"
    LIST = "list"
    DICT = "dict"


def _is_real(x) -> bool:
    return isinstance(x, (int, float, np.integer, np.floating)) and not isinstance(x, (bool, np.bool_))


def _is_integral(x) -> bool:
    return isinstance(x, (int, np.integer)) and not isinstance(x, (bool, np.bool_))


def _wrap(item) -> "Value":
    return item if isinstance(item, Value) else Value(item)


def _check_range(x, lo, hi, kind):
    x = int(x)
    if not lo <= x <= hi:
        raise TypeMismatch(f"{x} does not fit in {kind.value}")
    return x


class Value:
    """Closed tagged union. See the module docstring for the accepted payloads."""

    __slots__ = ("_kind", "_payload")

    def __init__(self, payload: Any, *, copy: bool = True):
        if isinstance(payload, Value):
            self._kind, self._payload = payload._kind, payload._payload
            # A copy owns its own top-level container.
            if copy and self._kind is Kind.LIST:
                self._payload = list(self._payload)
            elif copy and self._kind is Kind.DICT:
                self._payload = dict(self._payload)
            return
        self._kind, self._payload = _infer(payload, copy)

    @classmethod
    def _make(cls, kind: Kind, payload) -> "Value":
        obj = object.__new__(cls)
        obj._kind = kind
        obj._payload = payload
        return obj

    # ------------------------------------------------------------------ explicit constructors
    @classmethod
    def float32(cls, x) -> "Value":
        if not _is_real(x):
            raise TypeMismatch(f"float32 payload must be a real number, got {type(x).__name__}")
        if np.isfinite(x) and abs(float(x)) > _FLOAT32_MAX:
            raise TypeMismatch(f"{x} does not fit in float32")
        return cls._make(Kind.FLOAT, np.float32(x))

    @classmethod
    def float64(cls, x) -> "Value":
        if not _is_real(x):
            raise TypeMismatch(f"float64 payload must be a real number, got {type(x).__name__}")
        return cls._make(Kind.DOUBLE, float(x))

    @classmethod
    def boolean(cls, x) -> "Value":
        if not isinstance(x, (bool, np.bool_)):
            raise TypeMismatch(f"bool payload must be a bool, got {type(x).__name__}")
        return cls._make(Kind.BOOL, bool(x))

    @classmethod
    def int32(cls, x) -> "Value":
        if not _is_integral(x):
            raise TypeMismatch(f"int32 payload must be an integer, got {type(x).__name__}")
        return cls._make(Kind.INT32, _check_range(x, _INT32_MIN, _INT32_MAX, Kind.INT32))

    @classmethod
    def int64(cls, x) -> "Value":
        if not _is_integral(x):
            raise TypeMismatch(f"int64 payload must be an integer, got {type(x).__name__}")
        return cls._make(Kind.INT64, _check_range(x, _INT64_MIN, _INT64_MAX, Kind.INT64))

    @classmethod
    def string(cls, x) -> "Value":
        if not isinstance(x, str):
            raise TypeMismatch(f"string payload must be a str, got {type(x).__name__}")
        return cls._make(Kind.STRING, x)

    @classmethod
    def variable(cls, x, *, requires_grad: bool = False) -> "Value":
        """Wrap a Variable, or a raw array (which becomes a Variable with ``requires_grad``)."""
        if isinstance(x, Variable):
            return cls._make(Kind.VARIABLE, x)
        if isinstance(x, np.ndarray):
            return cls._make(Kind.VARIABLE, Variable(x, requires_grad=requires_grad))
        raise TypeMismatch(f"variable payload must be a Variable or ndarray, got {type(x).__name__}")

    @classmethod
    def list(cls, items, *, copy: bool = True) -> "Value":
        if not isinstance(items, (list, tuple)):
            raise TypeMismatch(f"list payload must be a list or tuple, got {type(items).__name__}")
        return cls._make(Kind.LIST, _own_list(items, copy))

    @classmethod
    def dict(cls, items, *, copy: bool = True) -> "Value":
        if not isinstance(items, dict):
            raise TypeMismatch(f"dict payload must be a dict, got {type(items).__name__}")
        return cls._make(Kind.DICT, _own_dict(items, copy))

    # ------------------------------------------------------------------ tags
    @property
    def kind(self) -> Kind:
        return self._kind

    def is_float(self) -> bool:
        return self._kind is Kind.FLOAT

    def is_double(self) -> bool:
        return self._kind is Kind.DOUBLE

    def is_bool(self) -> bool:
        return self._kind is Kind.BOOL

    def is_int32(self) -> bool:
        return self._kind is Kind.INT32

    def is_int64(self) -> bool:
        return self._kind is Kind.INT64

    def is_string(self) -> bool:
        return self._kind is Kind.STRING

    def is_variable(self) -> bool:
        return self._kind is Kind.VARIABLE

    def is_list(self) -> bool:
        return self._kind is Kind.LIST

    def is_dict(self) -> bool:
        return self._kind is Kind.DICT

    # ------------------------------------------------------------------ accessors
    def _expect(self, kind: Kind):
        if self._kind is not kind:
            raise TypeMismatch(f"Value holds {self._kind.value}, not {kind.value}")
        return self._payload

    def get_float(self) -> np.float32:
        return self._expect(Kind.FLOAT)

    def get_double(self) -> float:
        return self._expect(Kind.DOUBLE)

    def get_bool(self) -> bool:
        return self._expect(Kind.BOOL)

    def get_int32(self) -> int:
        return self._expect(Kind.INT32)

    def get_int64(self) -> int:
        return self._expect(Kind.INT64)

    def get_string(self) -> str:
        return self._expect(Kind.STRING)

    def get(self) -> Variable:
        return self._expect(Kind.VARIABLE)

    def get_list(self) -> List["Value"]:
        # Shared, not copied: treat as read-only.
        return self._expect(Kind.LIST)

    def get_dict(self) -> Dict[str, "Value"]:
        return self._expect(Kind.DICT)

    # ------------------------------------------------------------------ Variable delegates
    def data(self):
        return self.get().data

    def defined(self) -> bool:
        return self.get().defined()

    def detach(self) -> Variable:
        return self.get().detach()

    def type(self):
        return self.get().type()

    # ------------------------------------------------------------------ misc
    def to_python(self) -> Any:
        """Recursively unwrap into plain Python containers (Variables become their arrays)."""
        if self._kind is Kind.LIST:
            return [v.to_python() for v in self._payload]
        if self._kind is Kind.DICT:
            return {k: v.to_python() for k, v in self._payload.items()}
        if self._kind is Kind.VARIABLE:
            return self._payload.data
        if self._kind is Kind.FLOAT:
            return float(self._payload)
        return self._payload

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        if self._kind is not other._kind:
            return False
        if self._kind is Kind.VARIABLE:
            return self._payload is other._payload
        return self._payload == other._payload

    __hash__ = None

    def __repr__(self):
        return f"Value({self._kind.name}, {self._payload!r})"


def _own_list(items, copy: bool) -> List[Value]:
    if copy or not isinstance(items, list):
        return [_wrap(item) for item in items]
    # Adopt the caller's list, wrapping elements in place.
    for i, item in enumerate(items):
        if not isinstance(item, Value):
            items[i] = Value(item)
    return items


def _own_dict(items: dict, copy: bool) -> Dict[str, Value]:
    for key in items:
        if not isinstance(key, str):
            raise TypeMismatch(f"dict keys must be str, got {type(key).__name__}")
    if copy:
        return {k: _wrap(v) for k, v in items.items()}
    for k, v in items.items():
        if not isinstance(v, Value):
            items[k] = Value(v)
    return items


def _infer(payload, copy: bool):
    # bool before int: bool is an int subclass.
    if isinstance(payload, (bool, np.bool_)):
        return Kind.BOOL, bool(payload)
    if isinstance(payload, np.float32):
        return Kind.FLOAT, payload
    if isinstance(payload, (float, np.float64)):
        return Kind.DOUBLE, float(payload)
    if isinstance(payload, np.signedinteger) and payload.dtype.itemsize <= 4:
        return Kind.INT32, int(payload)
    if isinstance(payload, (int, np.int64)):
        return Kind.INT64, _check_range(payload, _INT64_MIN, _INT64_MAX, Kind.INT64)
    if isinstance(payload, str):
        return Kind.STRING, payload
    if isinstance(payload, Variable):
        return Kind.VARIABLE, payload
    if isinstance(payload, np.ndarray):
        return Kind.VARIABLE, Variable(payload)
    if isinstance(payload, (list, tuple)):
        return Kind.LIST, _own_list(payload, copy)
    if isinstance(payload, dict):
        return Kind.DICT, _own_dict(payload, copy)
    raise TypeMismatch(f"Value cannot hold a payload of type {type(payload).__name__}")
