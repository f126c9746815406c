"""
Polynomial design matrix (Vandermonde, increasing powers).
"""

import numpy as np

from .._utils import allocate, allocation_errors


def design_matrix(
    x: np.ndarray,
    n_columns: int,
    dtype=np.float64,
) -> np.ndarray:
    """
    Build the n x m matrix of monomial powers of x.

    Row i holds x_i**0, x_i**1, ..., x_i**(m-1).

    Parameters
    ----------
    x : ndarray, shape (n,)
        Sample values
    n_columns : int
        Number of columns m (degree + 1), at least 1
    dtype : numpy dtype
        Floating type of the result

    Returns
    -------
    X : ndarray, shape (n, m)
        C-contiguous design matrix

    Notes
    -----
    Powers are accumulated by repeated multiplication rather than
    ``np.power`` so integer-valued samples give exact entries and every
    column sees the same rounding sequence.
    """
    x = np.asarray(x, dtype=dtype)
    n = x.shape[0]

    X = allocate((n, n_columns), dtype=dtype, name='design matrix')
    with allocation_errors('power accumulator', (n,)):
        power = np.ones(n, dtype=dtype)
        for j in range(n_columns):
            X[:, j] = power
            power = power * x

    return X
