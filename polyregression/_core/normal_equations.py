"""
Normal equations for least squares.

Minimising ||X w - y||^2 is equivalent to solving (X'X) w = X'y.
"""

import numpy as np
from typing import Tuple

from ..exceptions import AllocationError


def normal_equations(
    X: np.ndarray,
    y: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Form the information matrix X'X and right-hand side X'y.

    Parameters
    ----------
    X : ndarray, shape (n, m)
        Design matrix
    y : ndarray, shape (n,)
        Response vector

    Returns
    -------
    XtX : ndarray, shape (m, m)
        Information matrix, symmetric by construction
    Xty : ndarray, shape (m,)
        Right-hand side

    No conditioning checks here; an ill-conditioned X'X is caught by
    the inversion step.
    """
    y = np.asarray(y, dtype=X.dtype)
    try:
        XtX = X.T @ X
        Xty = X.T @ y
    except MemoryError as e:
        m = X.shape[1]
        raise AllocationError(
            f"Cannot allocate normal equations for {m} coefficients",
            shape=(m, m),
            name='information matrix',
        ) from e

    return XtX, Xty
