"""
Device utilities: RNG seeding and accelerator capability queries.

CUDA is probed through the driver library with ctypes; nothing here is needed
by the backward engine itself.
"""

import ctypes
import ctypes.util
import logging
import os
import warnings

import numpy as np

logger = logging.getLogger(__name__)

_CUDA_SUCCESS = 0
_CUDA_ERROR_NO_DEVICE = 100

_cuda = None
_cuda_probed = False


def _load_cuda():
    """The CUDA driver library, or None when it is not installed."""
    global _cuda, _cuda_probed
    if _cuda_probed:
        return _cuda
    _cuda_probed = True
    path = os.environ.get('AAD_ENGINE_CUDA_LIB') or ctypes.util.find_library('cuda')
    if not path:
        return None
    try:
        lib = ctypes.CDLL(path)
    except OSError as exc:
        logger.debug("could not load CUDA driver %s: %s", path, exc)
        return None
    lib.cuInit.restype = ctypes.c_int
    lib.cuInit.argtypes = [ctypes.c_uint]
    lib.cuDeviceGetCount.restype = ctypes.c_int
    lib.cuDeviceGetCount.argtypes = [ctypes.POINTER(ctypes.c_int)]
    lib.cuGetErrorString.restype = ctypes.c_int
    lib.cuGetErrorString.argtypes = [ctypes.c_int, ctypes.POINTER(ctypes.c_char_p)]
    _cuda = lib
    return _cuda


def _cuda_error(lib, err: int) -> RuntimeError:
    msg = ctypes.c_char_p()
    lib.cuGetErrorString(err, ctypes.byref(msg))
    text = msg.value.decode() if msg.value else "unknown error"
    return RuntimeError(f"CUDA error ({err}): {text}")


def get_device_count() -> int:
    """Number of CUDA devices; 0 when there is no driver or no device."""
    lib = _load_cuda()
    if lib is None:
        return 0
    err = lib.cuInit(0)
    if err == _CUDA_ERROR_NO_DEVICE:
        return 0
    if err != _CUDA_SUCCESS:
        raise _cuda_error(lib, err)
    count = ctypes.c_int(0)
    err = lib.cuDeviceGetCount(ctypes.byref(count))
    if err == _CUDA_ERROR_NO_DEVICE:
        return 0
    if err != _CUDA_SUCCESS:
        raise _cuda_error(lib, err)
    return count.value


def has_accelerator() -> bool:
    return get_device_count() > 0


def has_accelerated_convolution() -> bool:
    """An accelerator is present and a cuDNN library can be found."""
    return has_accelerator() and ctypes.util.find_library('cudnn') is not None


def set_seed(seed: int) -> None:
    """Seed numpy's global RNG."""
    np.random.seed(seed)
    if has_accelerator():
        warnings.warn(
            "set_seed() only seeds the host RNG; accelerator RNG state is not managed "
            "by aad_engine.",
            RuntimeWarning,
            stacklevel=2,
        )
