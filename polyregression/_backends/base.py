"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from dataclasses import dataclass


@dataclass
class PolynomialFitResult:
    """Complete polynomial least-squares results."""
    coef: np.ndarray           # Coefficients, lowest power first
    fitted_values: np.ndarray  # Polynomial evaluated at training x
    residuals: np.ndarray      # y - fitted_values
    xtx_inv: np.ndarray        # Inverse information matrix (X'X)^-1
    rank: int                  # Number of coefficients (degree + 1)
    df_residual: int           # n - rank
    pivot_tol: float           # Singularity threshold used
    min_pivot: float           # Smallest absolute pivot during inversion


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name: str
    precision: str

    @abstractmethod
    def fit_polynomial(
        self,
        x: np.ndarray,
        y: np.ndarray,
        degree: int,
        pivot_tol: float
    ) -> PolynomialFitResult:
        """
        Fit polynomial by normal equations - complete computation.

        Backends implement ALL computation internally using their
        native types, only converting at entry/exit.

        Parameters
        ----------
        x : ndarray, shape (n,)
            Sample values (validated, n > degree)
        y : ndarray, shape (n,)
            Response vector (validated, same length as x)
        degree : int
            Polynomial degree
        pivot_tol : float
            Singularity threshold for Gauss-Jordan pivots

        Returns
        -------
        PolynomialFitResult
            Complete results (all numpy arrays)

        Raises
        ------
        SingularMatrixError
            If X'X cannot be inverted to working precision
        AllocationError
            If a working buffer cannot be allocated
        """
        pass

    @abstractmethod
    def predict_polynomial(
        self,
        x: np.ndarray,
        coef: np.ndarray
    ) -> np.ndarray:
        """
        Evaluate a polynomial with the given coefficients at x.

        Parameters
        ----------
        x : ndarray, shape (n,)
            Points to evaluate
        coef : ndarray, shape (degree + 1,)
            Coefficients, lowest power first

        Returns
        -------
        ndarray, shape (n,)
            Predictions (numpy, backend precision)
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass


class CPUBackend(BackendBase):
    """CPU backend base class."""
    pass


class GPUBackendFP32(BackendBase):
    """GPU backend base class for FP32."""
    pass


class GPUBackendFP64(BackendBase):
    """GPU backend base class for FP64."""
    pass
