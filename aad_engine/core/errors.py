# aad_engine/core/errors.py
"""
Error taxonomy for the autograd core.

Every failure aborts the current backward pass and propagates to the caller.
Nothing here is retried.
"""


class AutogradError(Exception):
    """Base class for all errors raised by the autograd core."""


class ArgumentMismatch(AutogradError, ValueError):
    """Caller contract violation, e.g. root edges and seeds of different length."""


class TypeMismatch(AutogradError, TypeError):
    """A Value accessed as the wrong variant, or a gradient of the wrong shape."""


class GraphIntegrityError(AutogradError, RuntimeError):
    """Corrupt or cyclic graph. The graph must be discarded."""


class GraphAlreadyFreedError(AutogradError, RuntimeError):
    """Backward through a node whose buffers were released by an earlier pass."""
