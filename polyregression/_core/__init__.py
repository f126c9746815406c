"""
Core algorithms (NumPy reference implementation).
"""

from .design import design_matrix
from .normal_equations import normal_equations
from .inverse import (
    DEFAULT_PIVOT_TOL,
    gauss_jordan_inverse,
    gauss_jordan_inverse_with_pivots,
)
from .poly_solver import fit_polynomial

__all__ = [
    "design_matrix",
    "normal_equations",
    "gauss_jordan_inverse",
    "gauss_jordan_inverse_with_pivots",
    "fit_polynomial",
    "DEFAULT_PIVOT_TOL",
]
