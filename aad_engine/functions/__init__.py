# aad_engine/functions/__init__.py

# Ready-made backward nodes for assembling graphs by hand.
from .accumulate_grad import AccumulateGrad
from .basic import Lambda, Identity
from .arithmetic import (
    AddBackward, SubBackward, MulBackward, DivBackward, PowBackward,
    NegBackward, SumBackward,
)
from .transcendental import ExpBackward, LogBackward, SqrtBackward, ErfBackward
from .special import NormCdfBackward

__all__ = [
    "AccumulateGrad",
    "Lambda", "Identity",
    "AddBackward", "SubBackward", "MulBackward", "DivBackward", "PowBackward",
    "NegBackward", "SumBackward",
    "ExpBackward", "LogBackward", "SqrtBackward", "ErfBackward",
    "NormCdfBackward",
]
