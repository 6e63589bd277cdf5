from contextlib import contextmanager
from contextvars import ContextVar

import numpy as np
import numpy.typing as npt


__all__ = [
    "get_dtype",
    "set_dtype",
    "with_precision",
    "use_64bit_precision",
    "use_32bit_precision",
]

_bopvt_dtype: ContextVar[npt.DTypeLike] = ContextVar(
    "_bopvt_dtype", default=np.float64
)


def get_dtype() -> npt.DTypeLike:
    """
    Get the floating point type used to store PVT region parameters.

    :return: The current data type.
    """
    return _bopvt_dtype.get()


def set_dtype(dtype: npt.DTypeLike) -> None:
    """
    Set the floating point type used to store PVT region parameters.

    Only affects parameter storage sized after the call.

    :param dtype: The data type to set as default.
    """
    _bopvt_dtype.set(dtype)


@contextmanager
def with_precision(dtype: npt.DTypeLike):
    """
    Context manager to temporarily set the parameter storage precision.

    :param dtype: The data type to set within the context.
    """
    token = _bopvt_dtype.set(dtype)
    try:
        yield
    finally:
        _bopvt_dtype.reset(token)


def use_64bit_precision() -> None:
    """
    Store region parameters as float64.

    Default precision for bopvt.
    """
    set_dtype(np.float64)


def use_32bit_precision() -> None:
    """Store region parameters as float32."""
    set_dtype(np.float32)
