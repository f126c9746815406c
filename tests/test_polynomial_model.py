"""
Test PolynomialModel: fit/predict lifecycle, error semantics, statistics.
"""

import pytest
import numpy as np
import pandas as pd
from scipy import stats

from polyregression import (
    PolynomialModel,
    polyfit,
    get_backend,
    PolyRegressionError,
    ValidationError,
    InvalidDimensionsError,
    NotFullRankError,
    NegativeDegreeError,
    SingularMatrixError,
    NotFittedError,
    AllocationError,
)

TOL = 1e-6


class TestScenarios:
    """Worked examples."""

    def test_constant(self):
        """Degree 0 on constant data."""
        model = PolynomialModel(0)
        model.fit([1.0, 2.0, 3.0, 4.0, 5.0], [5.0, 5.0, 5.0, 5.0, 5.0])

        np.testing.assert_allclose(model.coefficients, [5.0], atol=TOL)
        np.testing.assert_allclose(model.predict([6.0]), [5.0], atol=TOL)

    def test_linear(self):
        """Degree 1: y = 1 + 2x."""
        model = PolynomialModel(1)
        model.fit([0.0, 1.0, 2.0, 3.0, 4.0], [1.0, 3.0, 5.0, 7.0, 9.0])

        np.testing.assert_allclose(model.coefficients, [1.0, 2.0], atol=TOL)
        np.testing.assert_allclose(model.predict([5.0]), [11.0], atol=TOL)

    def test_quadratic(self, quadratic_data):
        """Degree 2: y = 3 + x + 2x^2."""
        x, y, beta = quadratic_data
        model = PolynomialModel(2)
        model.fit(x, y)

        np.testing.assert_allclose(model.coefficients, beta, atol=TOL)
        np.testing.assert_allclose(model.predict([5.0]), [58.0], atol=TOL)

    def test_cubic(self):
        """Degree 3: y = -5 + 3x - 2x^2 + x^3."""
        model = PolynomialModel(3)
        model.fit([0.0, 1.0, 2.0, 3.0, 4.0, 5.0], [-5.0, -3.0, 1.0, 13.0, 39.0, 85.0])

        np.testing.assert_allclose(model.coefficients, [-5.0, 3.0, -2.0, 1.0], atol=TOL)
        np.testing.assert_allclose(model.predict([6.0]), [157.0], atol=TOL)

    def test_multiple_predictions(self):
        """y = x^2 extrapolated to several points."""
        model = PolynomialModel(2).fit([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 4.0, 9.0])

        predictions = model.predict([4.0, 5.0, 6.0])

        assert predictions.shape == (3,)
        np.testing.assert_allclose(predictions, [16.0, 25.0, 36.0], atol=TOL)

    def test_too_few_samples(self):
        """Two samples cannot determine a cubic."""
        model = PolynomialModel(3)
        with pytest.raises(NotFullRankError) as excinfo:
            model.fit([0.0, 1.0], [0.0, 1.0])

        assert excinfo.value.n_samples == 2
        assert excinfo.value.n_coefficients == 4

    def test_predict_before_fit(self):
        """Fresh model refuses to predict."""
        model = PolynomialModel(2)
        with pytest.raises(NotFittedError):
            model.predict([1.0])


class TestProperties:
    """Invariants that hold for any data."""

    @pytest.mark.parametrize("degree", [0, 1, 2, 3, 4, 5])
    def test_exact_recovery(self, rng, degree):
        """Noise-free data from a degree-d polynomial is recovered."""
        beta = rng.uniform(-3, 3, degree + 1)
        x = np.linspace(-2.0, 2.0, 3 * degree + 4)
        y = np.polynomial.polynomial.polyval(x, beta)

        model = PolynomialModel(degree).fit(x, y)

        assert len(model.coefficients) == degree + 1
        np.testing.assert_allclose(model.coefficients, beta, atol=TOL)

    @pytest.mark.parametrize("degree", [0, 1, 2, 3])
    def test_predict_reproduces_training(self, degree):
        """Predictions at the training x equal the training y."""
        x = np.arange(degree + 3, dtype=float)
        y = np.polynomial.polynomial.polyval(x, np.arange(1.0, degree + 2))

        model = PolynomialModel(degree).fit(x, y)

        np.testing.assert_allclose(model.predict(x), y, atol=TOL)
        np.testing.assert_allclose(model.fitted_values, y, atol=TOL)

    @pytest.mark.parametrize("x", [[1.0], [], [0.0, 2.0, 4.0], np.linspace(0, 1, 50)])
    @pytest.mark.parametrize("degree", [0, 2, 7])
    def test_state_guard(self, degree, x):
        """Unfitted predict always fails with NotFittedError."""
        with pytest.raises(NotFittedError):
            PolynomialModel(degree).predict(x)

    def test_state_guard_ignores_bad_input(self):
        """NotFitted is reported before input validation."""
        with pytest.raises(NotFittedError):
            PolynomialModel(1).predict([[1.0, 2.0]])

    @pytest.mark.parametrize("degree", [0, 1, 3, 10])
    @pytest.mark.parametrize("n_x,n_y", [(3, 4), (5, 2), (0, 1)])
    def test_dimension_guard(self, degree, n_x, n_y):
        """Mismatched lengths fail with InvalidDimensions whatever the degree."""
        model = PolynomialModel(degree)
        with pytest.raises(InvalidDimensionsError):
            model.fit(np.arange(n_x, dtype=float), np.arange(n_y, dtype=float))
        assert model.coefficients is None

    @pytest.mark.parametrize("degree,n", [(0, 0), (1, 1), (3, 2), (3, 3), (5, 0)])
    def test_rank_guard(self, degree, n):
        """n <= degree fails with NotFullRank."""
        x = np.arange(n, dtype=float)
        with pytest.raises(NotFullRankError):
            PolynomialModel(degree).fit(x, x)

    def test_refit_replaces(self, rng):
        """Second fit gives exactly what a fresh model fit on that data gives."""
        x1 = rng.uniform(-1, 1, 20)
        y1 = rng.standard_normal(20)
        x2 = np.linspace(0, 5, 12)
        y2 = 2.0 - x2 + 0.5 * x2**2 + rng.standard_normal(12) * 0.1

        refit = PolynomialModel(2).fit(x1, y1).fit(x2, y2)
        fresh = PolynomialModel(2).fit(x2, y2)

        np.testing.assert_array_equal(refit.coefficients, fresh.coefficients)
        np.testing.assert_array_equal(refit.residuals, fresh.residuals)
        assert refit.n_obs == 12


class TestTransactionalFit:
    """A failed fit leaves the previous fitted state untouched."""

    @pytest.fixture
    def fitted(self, quadratic_data):
        x, y, _ = quadratic_data
        model = PolynomialModel(2).fit(x, y)
        return model, model.coefficients

    def test_singular_refit_preserves_state(self, fitted):
        """All-equal x makes X'X singular."""
        model, before = fitted
        with pytest.raises(SingularMatrixError):
            model.fit([1.0, 1.0, 1.0, 1.0], [1.0, 2.0, 3.0, 4.0])

        np.testing.assert_array_equal(model.coefficients, before)
        assert model.n_obs == 5

    def test_rank_failure_preserves_state(self, fitted):
        model, before = fitted
        with pytest.raises(NotFullRankError):
            model.fit([1.0, 2.0], [1.0, 2.0])
        np.testing.assert_array_equal(model.coefficients, before)

    def test_dimension_failure_preserves_state(self, fitted):
        model, before = fitted
        with pytest.raises(InvalidDimensionsError):
            model.fit([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(model.coefficients, before)

    def test_allocation_failure_preserves_state(self, fitted, monkeypatch):
        """Allocator failure mid-pipeline propagates as AllocationError."""
        model, before = fitted

        def fail(*args, **kwargs):
            raise MemoryError("simulated")

        monkeypatch.setattr(np, "empty", fail)
        with pytest.raises(AllocationError):
            model.fit([0.0, 1.0, 2.0, 3.0], [1.0, 0.0, 1.0, 0.0])
        monkeypatch.undo()

        np.testing.assert_array_equal(model.coefficients, before)

    def test_late_allocation_failure_preserves_state(self, quadratic_data, monkeypatch):
        """Failure inside the elimination loop, after all buffers exist."""
        x, y, _ = quadratic_data
        model = PolynomialModel(2, backend='cpu').fit(x, y)
        before = model.coefficients

        def fail(*args, **kwargs):
            raise MemoryError("simulated")

        monkeypatch.setattr(np, "outer", fail)
        with pytest.raises(AllocationError):
            model.fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0])
        monkeypatch.undo()

        np.testing.assert_array_equal(model.coefficients, before)

    def test_predict_allocation_failure(self, quadratic_data, monkeypatch):
        x, y, _ = quadratic_data
        model = PolynomialModel(2, backend='cpu').fit(x, y)

        def fail(*args, **kwargs):
            raise MemoryError("simulated")

        monkeypatch.setattr(np, "ones", fail)
        with pytest.raises(AllocationError):
            model.predict([5.0])

    def test_coefficients_is_a_copy(self, fitted):
        """Mutating the returned vector does not touch the model."""
        model, before = fitted
        coefs = model.coefficients
        coefs[:] = 0.0
        np.testing.assert_array_equal(model.coefficients, before)


class TestConstructionAndValidation:
    """Degree validation and input checks."""

    def test_negative_degree(self):
        """Negative degree rejected at construction."""
        with pytest.raises(NegativeDegreeError) as excinfo:
            PolynomialModel(-1)
        assert excinfo.value.degree == -1
        assert isinstance(excinfo.value, ValueError)

    @pytest.mark.parametrize("degree", [2.5, "2", None, True])
    def test_non_integer_degree(self, degree):
        with pytest.raises(TypeError):
            PolynomialModel(degree)

    def test_numpy_integer_degree(self):
        model = PolynomialModel(np.int64(2))
        assert model.degree == 2
        assert isinstance(model.degree, int)

    def test_initial_state(self):
        model = PolynomialModel(3)
        assert model.coefficients is None
        assert not model.is_fitted
        assert repr(model) == "PolynomialModel(degree=3, unfitted)"

    def test_fitted_accessors_require_fit(self):
        model = PolynomialModel(1)
        for attr in ['coef', 'residuals', 'vcov', 'pvalues', 'r_squared']:
            with pytest.raises(NotFittedError):
                getattr(model, attr)
        with pytest.raises(NotFittedError):
            model.summary()

    def test_non_finite_input(self):
        with pytest.raises(ValidationError):
            PolynomialModel(1).fit([0.0, 1.0, np.nan], [1.0, 2.0, 3.0])
        with pytest.raises(ValidationError):
            PolynomialModel(1).fit([0.0, 1.0, 2.0], [1.0, np.inf, 3.0])

    def test_non_numeric_input(self):
        with pytest.raises(ValidationError):
            PolynomialModel(1).fit(["a", "b", "c"], [1.0, 2.0, 3.0])

    def test_two_dimensional_input(self):
        with pytest.raises(InvalidDimensionsError):
            PolynomialModel(1).fit([[0.0, 1.0], [2.0, 3.0]], [1.0, 2.0])

        model = PolynomialModel(1).fit([0.0, 1.0, 2.0], [1.0, 2.0, 3.0])
        with pytest.raises(InvalidDimensionsError):
            model.predict([[1.0, 2.0]])

    def test_error_hierarchy(self):
        for exc in [InvalidDimensionsError, NotFullRankError, NegativeDegreeError,
                    SingularMatrixError, NotFittedError, AllocationError]:
            assert issubclass(exc, PolyRegressionError)

    def test_predict_empty(self, quadratic_data):
        x, y, _ = quadratic_data
        model = PolynomialModel(2).fit(x, y)
        assert model.predict([]).shape == (0,)

    def test_accepts_lists_and_integers(self):
        model = PolynomialModel(1).fit([0, 1, 2, 3, 4], [1, 3, 5, 7, 9])
        assert model.coefficients.dtype == np.float64
        np.testing.assert_allclose(model.predict([5]), [11.0], atol=TOL)


class TestStatistics:
    """R-style inference built from the Gauss-Jordan inverse."""

    def test_matches_numpy_polyfit(self, noisy_quadratic_data):
        x, y, _ = noisy_quadratic_data
        model = PolynomialModel(2).fit(x, y)

        expected = np.polyfit(x, y, 2)[::-1]
        np.testing.assert_allclose(model.coefficients, expected, rtol=1e-8, atol=1e-10)

    def test_vcov_and_standard_errors(self, noisy_quadratic_data):
        """vcov = sigma^2 (X'X)^-1, SE = sqrt(diag(vcov))."""
        x, y, _ = noisy_quadratic_data
        model = PolynomialModel(2).fit(x, y)

        X = np.column_stack([np.ones_like(x), x, x**2])
        rss = np.sum((y - X @ model.coefficients) ** 2)
        sigma = np.sqrt(rss / (len(x) - 3))
        vcov = sigma**2 * np.linalg.inv(X.T @ X)

        np.testing.assert_allclose(model.sigma, sigma, rtol=1e-10)
        np.testing.assert_allclose(model.vcov, vcov, rtol=1e-8, atol=1e-14)
        np.testing.assert_allclose(model.std_errors, np.sqrt(np.diag(vcov)), rtol=1e-8)
        assert model.df_residual == len(x) - 3

    def test_pvalues_and_r_squared(self, noisy_quadratic_data):
        x, y, _ = noisy_quadratic_data
        model = PolynomialModel(2).fit(x, y)

        t = model.coefficients / model.std_errors
        np.testing.assert_allclose(model.t_values, t, rtol=1e-12)
        np.testing.assert_allclose(
            model.pvalues, 2 * stats.t.sf(np.abs(t), model.df_residual), rtol=1e-10
        )

        tss = np.sum((y - y.mean()) ** 2)
        rss = np.sum(model.residuals ** 2)
        np.testing.assert_allclose(model.r_squared, 1 - rss / tss, rtol=1e-12)
        assert 0.0 < model.adj_r_squared < model.r_squared < 1.0

    def test_conf_int(self, noisy_quadratic_data):
        x, y, beta_true = noisy_quadratic_data
        model = PolynomialModel(2).fit(x, y)

        ci = model.conf_int()

        assert isinstance(ci, pd.DataFrame)
        assert list(ci.columns) == ['lower', 'upper']
        assert list(ci.index) == ['Intercept', 'x', 'x^2']
        assert np.all(ci['lower'].values < model.coefficients)
        assert np.all(model.coefficients < ci['upper'].values)

        # Narrower at lower confidence
        ci80 = model.conf_int(alpha=0.2)
        assert np.all(ci80['upper'] - ci80['lower'] < ci['upper'] - ci['lower'])

    def test_named_coefficients(self, quadratic_data):
        x, y, beta = quadratic_data
        coef = PolynomialModel(2).fit(x, y).coef

        assert isinstance(coef, pd.Series)
        assert list(coef.index) == ['Intercept', 'x', 'x^2']
        np.testing.assert_allclose(coef.values, beta, atol=TOL)

    def test_exact_interpolation_has_no_residual_df(self):
        """n == degree + 1: coefficients fine, inference undefined."""
        model = PolynomialModel(2).fit([0.0, 1.0, 2.0], [1.0, 2.0, 5.0])

        np.testing.assert_allclose(model.coefficients, [1.0, 0.0, 1.0], atol=TOL)
        assert model.df_residual == 0
        assert np.isnan(model.sigma)
        assert np.all(np.isnan(model.pvalues))
        assert np.isnan(model.adj_r_squared)

    def test_constant_response_r_squared(self):
        model = PolynomialModel(0).fit([1.0, 2.0, 3.0], [5.0, 5.0, 5.0])
        assert model.r_squared == 0.0

    def test_min_pivot(self, quadratic_data):
        x, y, _ = quadratic_data
        model = PolynomialModel(2).fit(x, y)
        assert model.min_pivot >= model.pivot_tol

    def test_equation(self):
        model = PolynomialModel(3).fit(
            [0.0, 1.0, 2.0, 3.0, 4.0, 5.0], [-5.0, -3.0, 1.0, 13.0, 39.0, 85.0]
        )
        assert model.equation() == "y = -5 + 3x - 2x^2 + 1x^3"
        assert model.equation(variable='t') == "y = -5 + 3t - 2t^2 + 1t^3"

    def test_equation_skips_zero_terms(self):
        model = PolynomialModel(2).fit([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 4.0, 9.0])
        assert model.equation() == "y = 1x^2"

    def test_summary(self, noisy_quadratic_data, capsys):
        x, y, _ = noisy_quadratic_data
        PolynomialModel(2).fit(x, y).summary()

        out = capsys.readouterr().out
        assert 'POLYNOMIAL REGRESSION RESULTS' in out
        assert 'Intercept' in out
        assert 'x^2' in out
        assert 'Backend: cpu_fp64' in out

    def test_summary_without_residual_df(self, capsys):
        PolynomialModel(1).fit([0.0, 1.0], [1.0, 3.0]).summary()
        assert 'NA' in capsys.readouterr().out

    def test_repr_fitted(self, quadratic_data):
        x, y, _ = quadratic_data
        model = PolynomialModel(2).fit(x, y)
        assert repr(model) == "PolynomialModel(degree=2, n=5, R²=1.000)"


class TestConfiguration:
    """Backend, precision and threshold options."""

    def test_polyfit_convenience(self):
        model = polyfit([0.0, 1.0, 2.0, 3.0, 4.0], [1.0, 3.0, 5.0, 7.0, 9.0], degree=1)
        assert model.is_fitted
        np.testing.assert_allclose(model.coefficients, [1.0, 2.0], atol=TOL)

    def test_fp32_cpu_backend(self):
        """use_fp64=False selects single precision on CPU."""
        model = PolynomialModel(1, backend='cpu', use_fp64=False)
        model.fit([0.0, 1.0, 2.0, 3.0, 4.0], [1.0, 3.0, 5.0, 7.0, 9.0])

        assert model.backend.name == 'cpu_fp32'
        assert model.coefficients.dtype == np.float32
        np.testing.assert_allclose(model.coefficients, [1.0, 2.0], atol=1e-4)

        predictions = model.predict([5.0])
        assert predictions.dtype == np.float32
        np.testing.assert_allclose(predictions, [11.0], atol=1e-4)

    def test_backend_instance(self):
        backend = get_backend('cpu')
        model = PolynomialModel(1, backend=backend)
        assert model.backend is backend

    def test_pivot_tol(self):
        """Caller-chosen threshold is used for the singularity check."""
        x = [0.0, 1.0, 2.0, 3.0]
        with pytest.raises(SingularMatrixError):
            PolynomialModel(1, pivot_tol=1e3).fit(x, x)
        PolynomialModel(1, pivot_tol=1e-3).fit(x, x)
