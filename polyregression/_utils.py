"""
Utility functions.
"""

import numbers
from contextlib import contextmanager

import numpy as np

from .exceptions import (
    AllocationError,
    InvalidDimensionsError,
    NegativeDegreeError,
    ValidationError,
)


def check_vector(x, name='x', dtype=np.float64, finite=True):
    """Validate vector input (1-D, real, numeric; finite unless finite=False)."""
    try:
        arr = np.asarray(x)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if arr.dtype == object or not (
        np.issubdtype(arr.dtype, np.number) or arr.dtype == np.bool_
    ):
        raise ValidationError(f"{name}: non-numeric dtype {arr.dtype}")
    if np.issubdtype(arr.dtype, np.complexfloating):
        raise ValidationError(f"{name}: complex values are not supported")
    if arr.ndim != 1:
        raise InvalidDimensionsError(
            f"{name} must be 1-dimensional, got {arr.ndim} dimensions"
        )

    arr = np.ascontiguousarray(arr, dtype=dtype)
    if finite:
        check_finite(arr, name)
    return arr


def check_finite(arr, name='x'):
    """Verify array contains no NaN or Inf values."""
    if not np.all(np.isfinite(arr)):
        raise ValidationError(f"{name} contains NaN or Inf")


def check_degree(degree):
    """Validate polynomial degree (non-negative integer)."""
    if isinstance(degree, bool) or not isinstance(degree, numbers.Integral):
        raise TypeError(
            f"degree must be an integer, got {type(degree).__name__}"
        )
    degree = int(degree)
    if degree < 0:
        raise NegativeDegreeError(
            f"degree must be non-negative, got {degree}", degree=degree
        )
    return degree


def allocate(shape, dtype=np.float64, name='array'):
    """Allocate an uninitialised C-contiguous buffer."""
    try:
        return np.empty(shape, dtype=dtype)
    except MemoryError as e:
        raise AllocationError(
            f"Cannot allocate {name} with shape {shape} ({np.dtype(dtype).name})",
            shape=shape,
            name=name,
        ) from e


@contextmanager
def allocation_errors(name, shape=None):
    """Re-raise any MemoryError inside the block as AllocationError."""
    try:
        yield
    except AllocationError:
        raise
    except MemoryError as e:
        raise AllocationError(
            f"Cannot allocate {name} with shape {shape}",
            shape=shape,
            name=name,
        ) from e
