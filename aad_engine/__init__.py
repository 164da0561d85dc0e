# aad_engine/__init__.py
# Reverse-mode automatic differentiation engine

from .config import EngineConfig
from .core import (
    AutogradError,
    ArgumentMismatch,
    TypeMismatch,
    GraphIntegrityError,
    GraphAlreadyFreedError,
    Variable,
    Value,
    Kind,
    Edge,
    Node,
    Graph,
    use_graph,
    Engine,
    get_default_engine,
    set_default_engine,
    reset_default_engine,
    use_engine,
    backward,
    grad,
    value,
)
from . import functions
from .device import set_seed, get_device_count, has_accelerator, has_accelerated_convolution

__version__ = "0.1.0"

__all__ = [
    # Config
    'EngineConfig',
    # Errors
    'AutogradError',
    'ArgumentMismatch',
    'TypeMismatch',
    'GraphIntegrityError',
    'GraphAlreadyFreedError',
    # Graph
    'Variable',
    'Value',
    'Kind',
    'Edge',
    'Node',
    'Graph',
    'use_graph',
    # Engine
    'Engine',
    'get_default_engine',
    'set_default_engine',
    'reset_default_engine',
    'use_engine',
    'backward',
    'grad',
    'value',
    # Backward nodes
    'functions',
    # Device
    'set_seed',
    'get_device_count',
    'has_accelerator',
    'has_accelerated_convolution',
]
