"""
Polynomial least-squares solver.

Delegates to backend for actual computation.
"""

import numpy as np
from typing import Optional

from .inverse import DEFAULT_PIVOT_TOL


def fit_polynomial(
    x: np.ndarray,
    y: np.ndarray,
    degree: int,
    pivot_tol: Optional[float] = None,
    backend = None,
):
    """
    Fit polynomial via backend.

    This is just a thin wrapper - backends do all the work.

    Parameters
    ----------
    x : ndarray, shape (n,)
        Sample values
    y : ndarray, shape (n,)
        Response vector
    degree : int
        Polynomial degree
    pivot_tol : float, optional
        Singularity threshold for Gauss-Jordan pivots
    backend : Backend, optional
        Computational backend

    Returns
    -------
    result : PolynomialFitResult (from backend)
        Fitted coefficients and diagnostics
    """
    if backend is None:
        from .._backends import get_backend
        backend = get_backend('cpu')

    return backend.fit_polynomial(
        x, y, degree,
        pivot_tol=DEFAULT_PIVOT_TOL if pivot_tol is None else pivot_tol
    )
