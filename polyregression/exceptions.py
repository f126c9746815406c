"""
Exception hierarchy for PolyRegression.

Every error raised by the library derives from PolyRegressionError so callers
can catch anything library-specific in one place. Exceptions carry the
offending values as attributes; messages state actual vs expected.
"""


class PolyRegressionError(Exception):
    """Base exception for all PolyRegression errors."""
    pass


class ValidationError(PolyRegressionError, ValueError):
    """Input validation failed."""
    pass


class InvalidDimensionsError(ValidationError):
    """
    Array shapes are wrong or inconsistent.

    Raised when x and y lengths differ, when an input is not
    1-dimensional, or when a matrix that must be square is not.
    """
    pass


class NotFullRankError(ValidationError):
    """
    Too few samples to determine the polynomial uniquely.

    A degree-d polynomial has d + 1 unknowns; fitting it needs more
    than d samples.

    Attributes:
        n_samples: Number of samples supplied
        n_coefficients: Number of coefficients to estimate (degree + 1)
    """

    def __init__(self, message: str, n_samples: int, n_coefficients: int):
        super().__init__(message)
        self.n_samples = n_samples
        self.n_coefficients = n_coefficients


class NegativeDegreeError(ValidationError):
    """
    Polynomial degree is negative.

    Attributes:
        degree: The rejected degree
    """

    def __init__(self, message: str, degree: int):
        super().__init__(message)
        self.degree = degree


class NumericalError(PolyRegressionError):
    """Numerical computation failed."""
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular to working precision.

    Raised by Gauss-Jordan inversion when the best available pivot in a
    column falls below the threshold (or is not finite).

    Attributes:
        pivot_index: Column being eliminated when inversion stopped
        pivot_value: Absolute value of the best pivot found
        threshold: Pivot threshold in effect
    """

    def __init__(
        self,
        message: str,
        pivot_index: int | None = None,
        pivot_value: float | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.pivot_index = pivot_index
        self.pivot_value = pivot_value
        self.threshold = threshold


class NotFittedError(PolyRegressionError, RuntimeError):
    """Model used before a successful fit()."""
    pass


class AllocationError(PolyRegressionError, MemoryError):
    """
    A matrix or vector could not be allocated.

    Attributes:
        shape: Requested shape
        name: Buffer being allocated
    """

    def __init__(self, message: str, shape=None, name: str | None = None):
        super().__init__(message)
        self.shape = shape
        self.name = name
