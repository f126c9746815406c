"""
CPU backend using NumPy.

This is the reference implementation of the normal-equation pipeline.
"""

import numpy as np

from .base import CPUBackend, PolynomialFitResult
from .._core.design import design_matrix
from .._core.normal_equations import normal_equations
from .._core.inverse import gauss_jordan_inverse_with_pivots
from .._utils import allocation_errors


class CPUBackendFP64(CPUBackend):
    """
    CPU backend using NumPy in double precision.

    Default backend: X'X of a polynomial design squares the condition
    number of X, so FP64 is needed for anything beyond low degrees.
    """

    dtype = np.float64

    def __init__(self):
        self.name = "cpu_fp64"
        self.precision = "fp64"

    def fit_polynomial(
        self,
        x: np.ndarray,
        y: np.ndarray,
        degree: int,
        pivot_tol: float
    ) -> PolynomialFitResult:
        """
        Fit polynomial using NumPy.

        Design matrix -> normal equations -> Gauss-Jordan inverse ->
        coefficients = (X'X)^-1 X'y.
        """
        dtype = self.dtype
        x = np.asarray(x, dtype=dtype)
        y = np.asarray(y, dtype=dtype)
        n = len(y)
        m = degree + 1

        X = design_matrix(x, m, dtype=dtype)
        XtX, Xty = normal_equations(X, y)
        XtX_inv, pivots = gauss_jordan_inverse_with_pivots(XtX, tol=pivot_tol)

        with allocation_errors('fitted values', (n,)):
            coef = XtX_inv @ Xty
            fitted = X @ coef
            residuals = y - fitted

        return PolynomialFitResult(
            coef=coef,
            fitted_values=fitted,
            residuals=residuals,
            xtx_inv=XtX_inv,
            rank=m,
            df_residual=n - m,
            pivot_tol=float(pivot_tol),
            min_pivot=float(np.min(pivots))
        )

    def predict_polynomial(
        self,
        x: np.ndarray,
        coef: np.ndarray
    ) -> np.ndarray:
        """Evaluate polynomial: row-wise dot product of design and coef."""
        dtype = self.dtype
        X = design_matrix(np.asarray(x, dtype=dtype), len(coef), dtype=dtype)
        with allocation_errors('predictions', (X.shape[0],)):
            return X @ np.asarray(coef, dtype=dtype)

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'cpu',
            'precision': self.precision,
            'library': f'NumPy {np.__version__}',
        }


class CPUBackendFP32(CPUBackendFP64):
    """
    CPU backend using NumPy in single precision.

    Same algorithm as FP64. Only adequate for low degrees and
    well-scaled x; pivots shrink quickly in float32.
    """

    dtype = np.float32

    def __init__(self):
        self.name = "cpu_fp32"
        self.precision = "fp32"
