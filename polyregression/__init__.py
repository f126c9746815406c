"""
PolyRegression: closed-form polynomial least squares with R-style output.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .poly import polyfit, PolynomialModel
from .exceptions import (
    PolyRegressionError,
    ValidationError,
    InvalidDimensionsError,
    NotFullRankError,
    NegativeDegreeError,
    NumericalError,
    SingularMatrixError,
    NotFittedError,
    AllocationError,
)

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

__all__ = [
    'polyfit',
    'PolynomialModel',
    'get_backend',
    'list_available_backends',
    'PolyRegressionError',
    'ValidationError',
    'InvalidDimensionsError',
    'NotFullRankError',
    'NegativeDegreeError',
    'NumericalError',
    'SingularMatrixError',
    'NotFittedError',
    'AllocationError',
]
