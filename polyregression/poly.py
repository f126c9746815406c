"""
Polynomial regression with R-style interface and output.

This is the user-facing API: fit a degree-d polynomial by least squares,
then predict and inspect it.
"""

import numpy as np
import pandas as pd
from typing import Optional, Union
from dataclasses import dataclass
from scipy import stats

from ._backends import get_backend, BackendBase, PolynomialFitResult
from ._core.inverse import DEFAULT_PIVOT_TOL
from ._utils import check_vector, check_finite, check_degree
from .exceptions import InvalidDimensionsError, NotFullRankError, NotFittedError


@dataclass(frozen=True)
class PolynomialFit:
    """Fitted state of a PolynomialModel (immutable, swapped in whole)."""
    coef: np.ndarray
    fitted_values: np.ndarray
    residuals: np.ndarray
    xtx_inv: np.ndarray
    n_obs: int
    df_residual: int
    min_pivot: float

    sigma: float
    vcov: np.ndarray
    std_errors: np.ndarray
    t_values: np.ndarray
    pvalues: np.ndarray
    r_squared: float
    adj_r_squared: float


def _compute_statistics(result: PolynomialFitResult, y: np.ndarray) -> PolynomialFit:
    """Standard errors, t-stats, p-values, R² from a backend result."""
    coef = np.asarray(result.coef, dtype=np.float64)
    residuals = np.asarray(result.residuals, dtype=np.float64)
    xtx_inv = np.asarray(result.xtx_inv, dtype=np.float64)
    n = len(y)
    df = result.df_residual

    # Residual standard error (undefined for an exact interpolant)
    rss = float(np.sum(residuals**2))
    sigma = float(np.sqrt(rss / df)) if df > 0 else np.nan

    # Var(β) = σ² (X'X)⁻¹
    vcov = xtx_inv * sigma**2

    with np.errstate(divide='ignore', invalid='ignore'):
        std_errors = np.sqrt(np.diag(vcov))
        t_values = coef / std_errors

    if df > 0:
        pvalues = 2 * stats.t.sf(np.abs(t_values), df)
    else:
        pvalues = np.full(len(coef), np.nan)

    tss = float(np.sum((y - np.mean(y))**2))
    r_squared = 1 - (rss / tss) if tss > 0 else 0.0

    if df > 0:
        adj_r_squared = 1 - (1 - r_squared) * (n - 1) / df
    else:
        adj_r_squared = np.nan

    return PolynomialFit(
        coef=result.coef.copy(),
        fitted_values=result.fitted_values,
        residuals=result.residuals,
        xtx_inv=result.xtx_inv,
        n_obs=n,
        df_residual=df,
        min_pivot=result.min_pivot,
        sigma=sigma,
        vcov=vcov,
        std_errors=std_errors,
        t_values=t_values,
        pvalues=pvalues,
        r_squared=float(r_squared),
        adj_r_squared=float(adj_r_squared),
    )


def term_names(degree: int) -> list:
    """Names of the polynomial terms, lowest power first."""
    return ['Intercept'] + [
        'x' if power == 1 else f'x^{power}' for power in range(1, degree + 1)
    ]


class PolynomialModel:
    """
    Polynomial least-squares regression (closed form, normal equations).

    The model starts unfitted. fit() moves it to fitted; a later fit()
    replaces the coefficients entirely. A failed fit() leaves the model
    exactly as it was.

    Examples
    --------
    >>> from polyregression import PolynomialModel
    >>>
    >>> model = PolynomialModel(degree=2)
    >>> model.fit([0, 1, 2, 3, 4], [3, 6, 13, 24, 39])
    >>> model.coefficients        # array([3., 1., 2.])
    >>> model.predict([5.0])      # array([58.])
    >>> model.summary()           # Prints table like R
    >>> model.conf_int()          # Confidence intervals
    """

    def __init__(
        self,
        degree: int,
        backend: Union[str, BackendBase] = 'auto',
        use_fp64: Optional[bool] = None,
        pivot_tol: float = DEFAULT_PIVOT_TOL
    ):
        """
        Create an unfitted model.

        Parameters
        ----------
        degree : int
            Polynomial degree (non-negative)
        backend : str or BackendBase
            Computational backend: 'auto', 'cpu', 'gpu', 'pytorch'
        use_fp64 : bool, optional
            False allows FP32 backends
        pivot_tol : float
            Pivots below this make X'X singular

        Raises
        ------
        NegativeDegreeError
            If degree < 0
        TypeError
            If degree is not an integer
        """
        self._degree = check_degree(degree)
        self.pivot_tol = float(pivot_tol)
        self.backend = get_backend(backend, use_fp64=use_fp64)
        self._fit: Optional[PolynomialFit] = None

    @property
    def degree(self) -> int:
        """Polynomial degree (fixed at construction)."""
        return self._degree

    @property
    def is_fitted(self) -> bool:
        return self._fit is not None

    def fit(self, x, y) -> "PolynomialModel":
        """
        Fit coefficients minimising squared residual error.

        Parameters
        ----------
        x : array-like, shape (n,)
            Sample values
        y : array-like, shape (n,)
            Responses

        Returns
        -------
        self

        Raises
        ------
        InvalidDimensionsError
            If x and y lengths differ (or are not 1-D)
        NotFullRankError
            If n <= degree
        SingularMatrixError
            If X'X is singular to working precision
        AllocationError
            If a working buffer cannot be allocated
        """
        x = check_vector(x, name='x', finite=False)
        y = check_vector(y, name='y', finite=False)

        if len(x) != len(y):
            raise InvalidDimensionsError(
                f"x and y must have the same length, got {len(x)} and {len(y)}"
            )

        n_coef = self._degree + 1
        if len(x) < n_coef:
            raise NotFullRankError(
                f"Degree {self._degree} needs at least {n_coef} samples, got {len(x)}",
                n_samples=len(x),
                n_coefficients=n_coef,
            )

        check_finite(x, 'x')
        check_finite(y, 'y')

        result = self.backend.fit_polynomial(
            x, y, self._degree, pivot_tol=self.pivot_tol
        )
        fit = _compute_statistics(result, y)

        # Only now does the model change state
        self._fit = fit
        return self

    def predict(self, x) -> np.ndarray:
        """
        Evaluate the fitted polynomial.

        Parameters
        ----------
        x : array-like, shape (n,)
            Points to evaluate

        Returns
        -------
        ndarray, shape (n,)
            Predicted values

        Raises
        ------
        NotFittedError
            If fit() has not succeeded yet
        """
        fit = self._require_fit()
        x = check_vector(x, name='x')
        return self.backend.predict_polynomial(x, fit.coef)

    def _require_fit(self) -> PolynomialFit:
        if self._fit is None:
            raise NotFittedError(
                f"This PolynomialModel (degree {self._degree}) is not fitted yet. "
                f"Call fit() before using it."
            )
        return self._fit

    @property
    def coefficients(self) -> Optional[np.ndarray]:
        """Coefficients, lowest power first; None until fitted."""
        if self._fit is None:
            return None
        return self._fit.coef.copy()

    @property
    def coef(self) -> pd.Series:
        """Named coefficients (pandas Series)."""
        fit = self._require_fit()
        return pd.Series(fit.coef, index=term_names(self._degree))

    @property
    def fitted_values(self) -> np.ndarray:
        return self._require_fit().fitted_values

    @property
    def residuals(self) -> np.ndarray:
        return self._require_fit().residuals

    @property
    def n_obs(self) -> int:
        return self._require_fit().n_obs

    @property
    def df_residual(self) -> int:
        return self._require_fit().df_residual

    @property
    def sigma(self) -> float:
        """Residual standard error."""
        return self._require_fit().sigma

    @property
    def vcov(self) -> np.ndarray:
        """Variance-covariance matrix of coefficients."""
        return self._require_fit().vcov

    @property
    def std_errors(self) -> np.ndarray:
        return self._require_fit().std_errors

    @property
    def t_values(self) -> np.ndarray:
        return self._require_fit().t_values

    @property
    def pvalues(self) -> np.ndarray:
        """Two-sided p-values for each coefficient."""
        return self._require_fit().pvalues

    @property
    def r_squared(self) -> float:
        return self._require_fit().r_squared

    @property
    def adj_r_squared(self) -> float:
        return self._require_fit().adj_r_squared

    @property
    def min_pivot(self) -> float:
        """Smallest absolute pivot met while inverting X'X."""
        return self._require_fit().min_pivot

    def conf_int(self, alpha: float = 0.05) -> pd.DataFrame:
        """
        Confidence intervals for coefficients.

        Parameters
        ----------
        alpha : float
            Significance level (default: 0.05 for 95% CI)

        Returns
        -------
        DataFrame
            Confidence intervals with columns 'lower' and 'upper'
        """
        fit = self._require_fit()
        if fit.df_residual > 0:
            t_crit = stats.t.ppf(1 - alpha/2, fit.df_residual)
        else:
            t_crit = np.nan
        lower = fit.coef - t_crit * fit.std_errors
        upper = fit.coef + t_crit * fit.std_errors

        return pd.DataFrame({
            'lower': lower,
            'upper': upper
        }, index=term_names(self._degree))

    def equation(self, precision: int = 6, variable: str = 'x') -> str:
        """
        Fitted polynomial as text, e.g. 'y = 3 + 1x + 2x^2'.

        Terms whose coefficient rounds to zero at ``precision`` are omitted.
        """
        fit = self._require_fit()
        terms = []
        for power, c in enumerate(fit.coef):
            if abs(c) < 10 ** (-precision):
                continue
            sign = " - " if c < 0 else (" + " if terms else "")
            mag = f"{abs(c):.{precision}g}"
            if power == 0:
                term = mag
            elif power == 1:
                term = f"{mag}{variable}"
            else:
                term = f"{mag}{variable}^{power}"
            if not terms and c < 0:
                sign = "-"
            terms.append(sign + term)
        return "y = 0" if not terms else "y = " + "".join(terms)

    def summary(self):
        """
        Print summary of regression results (like R's summary.lm).
        """
        fit = self._require_fit()

        print()
        print("="*80)
        print("POLYNOMIAL REGRESSION RESULTS")
        print("="*80)
        print()

        print(f"Degree: {self._degree}")
        print(f"Number of observations: {fit.n_obs}")
        print(f"Degrees of freedom: {fit.df_residual} (residual), {self._degree} (model)")
        print(f"Equation: {self.equation(precision=4)}")
        print()

        print("Residuals:")
        residual_summary = pd.Series(fit.residuals).describe()
        print(f"  Min:    {residual_summary['min']:>10.4f}")
        print(f"  1Q:     {residual_summary['25%']:>10.4f}")
        print(f"  Median: {residual_summary['50%']:>10.4f}")
        print(f"  3Q:     {residual_summary['75%']:>10.4f}")
        print(f"  Max:    {residual_summary['max']:>10.4f}")
        print()

        print("Coefficients:")
        print("-"*80)
        print(f"{'Term':<20} {'Estimate':>12} {'Std. Error':>12} {'t value':>10} {'Pr(>|t|)':>12}")
        print("-"*80)

        for i, name in enumerate(term_names(self._degree)):
            p = fit.pvalues[i]
            if np.isnan(p):
                sig = ''
                p_str = 'NA'
            else:
                if p < 0.001:
                    sig = ' ***'
                elif p < 0.01:
                    sig = ' **'
                elif p < 0.05:
                    sig = ' *'
                elif p < 0.1:
                    sig = ' .'
                else:
                    sig = ''

                p_str = f"{p:.4f}" if p >= 0.0001 else "<.0001"

            print(f"{name:<20} {fit.coef[i]:>12.4f} {fit.std_errors[i]:>12.4f} "
                  f"{fit.t_values[i]:>10.3f} {p_str:>12}{sig}")

        print("-"*80)
        print("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        print()

        print(f"Residual standard error: {fit.sigma:.4f} on {fit.df_residual} degrees of freedom")
        print(f"Multiple R-squared:      {fit.r_squared:.4f}")
        print(f"Adjusted R-squared:      {fit.adj_r_squared:.4f}")
        print(f"Smallest pivot:          {fit.min_pivot:.3e} (threshold {self.pivot_tol:.1e})")

        print()
        print(f"Backend: {self.backend.name}")
        print("="*80)
        print()

    def __repr__(self):
        if self._fit is None:
            return f"PolynomialModel(degree={self._degree}, unfitted)"
        return (f"PolynomialModel(degree={self._degree}, n={self._fit.n_obs}, "
                f"R²={self._fit.r_squared:.3f})")


def polyfit(x, y, degree: int, **kwargs) -> PolynomialModel:
    """
    Fit polynomial regression model (convenience function).

    Parameters
    ----------
    x : array-like
        Sample values
    y : array-like
        Responses
    degree : int
        Polynomial degree
    **kwargs
        Additional arguments passed to PolynomialModel

    Returns
    -------
    PolynomialModel
        Fitted model object

    Examples
    --------
    >>> model = polyfit([0, 1, 2, 3, 4], [1, 3, 5, 7, 9], degree=1)
    >>> model.coef
    >>> model.predict([5.0])
    """
    return PolynomialModel(degree, **kwargs).fit(x, y)
