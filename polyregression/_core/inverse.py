"""
Matrix inversion by Gauss-Jordan elimination with partial pivoting.

Single deterministic O(m^3) pass, no iterative refinement.
"""

import numpy as np
from typing import Tuple

from .._utils import allocate, allocation_errors
from ..exceptions import InvalidDimensionsError, SingularMatrixError

# Pivots smaller than this in absolute value mean "singular"
DEFAULT_PIVOT_TOL = 1e-10


def gauss_jordan_inverse_with_pivots(
    A: np.ndarray,
    tol: float = DEFAULT_PIVOT_TOL,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Invert a square matrix, also returning the pivots used.

    Parameters
    ----------
    A : ndarray, shape (m, m)
        Matrix to invert (not modified)
    tol : float
        Smallest acceptable absolute pivot

    Returns
    -------
    inv : ndarray, shape (m, m)
        Inverse of A
    pivots : ndarray, shape (m,)
        Absolute value of the pivot chosen for each column

    Raises
    ------
    InvalidDimensionsError
        If A is not a square 2-D matrix
    SingularMatrixError
        If the best pivot of some column is below ``tol`` or not finite

    Algorithm, for each column i:
    1. Pick the row in i..m-1 with the largest |A[r, i]| (first on ties)
    2. Fail if that magnitude is below tol
    3. Swap it into row i of both the working copy and the inverse
    4. Scale row i so the pivot becomes 1
    5. Subtract multiples of row i from every other row to clear column i
    """
    A = np.asarray(A)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise InvalidDimensionsError(
            f"Matrix to invert must be square, got shape {A.shape}"
        )

    m = A.shape[0]
    dtype = A.dtype if np.issubdtype(A.dtype, np.floating) else np.float64

    work = allocate((m, m), dtype=dtype, name='working matrix')
    work[...] = A
    inv = allocate((m, m), dtype=dtype, name='inverse matrix')
    inv[...] = 0
    np.fill_diagonal(inv, 1)
    pivots = allocate(m, dtype=dtype, name='pivots')

    with allocation_errors('elimination workspace', (m, m)):
        _eliminate(work, inv, pivots, tol)

    return inv, pivots


def _eliminate(work, inv, pivots, tol):
    """Reduce work to the identity in place, applying the same row ops to inv."""
    m = work.shape[0]
    for i in range(m):
        pivot_row = i + int(np.argmax(np.abs(work[i:, i])))
        pivot_abs = abs(work[pivot_row, i])

        if not np.isfinite(pivot_abs) or pivot_abs < tol:
            raise SingularMatrixError(
                f"Matrix is singular to working precision: pivot {pivot_abs:.3e} "
                f"in column {i} is below threshold {tol:.1e}",
                pivot_index=i,
                pivot_value=float(pivot_abs),
                threshold=tol,
            )

        if pivot_row != i:
            work[[i, pivot_row]] = work[[pivot_row, i]]
            inv[[i, pivot_row]] = inv[[pivot_row, i]]

        pivot = work[i, i]
        work[i] /= pivot
        inv[i] /= pivot
        pivots[i] = pivot_abs

        # Row i has factor 0 so it is left untouched
        factors = work[:, i].copy()
        factors[i] = 0
        work -= np.outer(factors, work[i])
        inv -= np.outer(factors, inv[i])


def gauss_jordan_inverse(
    A: np.ndarray,
    tol: float = DEFAULT_PIVOT_TOL,
) -> np.ndarray:
    """Invert a square matrix via Gauss-Jordan with partial pivoting."""
    inv, _ = gauss_jordan_inverse_with_pivots(A, tol=tol)
    return inv
