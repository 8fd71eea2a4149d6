"""
Test the weighted least-squares solver.
"""

import pytest
import numpy as np

from pybacon._core.errors import BaconStatus
from pybacon._core.workspace import Estimate, RegData, Workspace
from pybacon._core.wls import (
    RANK_TOLERANCE,
    chol_from_qr,
    fit_wls,
    wls_workspace_size,
)


def _setup(x, y, w):
    data = RegData.from_arrays(x, y, w)
    n, p = data.n, data.p
    est = Estimate.allocate(n, p)
    work = Workspace.allocate(n, p, wls_workspace_size(n, p))
    return data, est, work


def _design(n=60, p=3, seed=7):
    rng = np.random.default_rng(seed)
    x = np.column_stack([np.ones(n), rng.standard_normal((n, p - 1))])
    y = x @ np.arange(1.0, p + 1.0) + 0.5 * rng.standard_normal(n)
    return x, y


class TestWorkspaceQuery:
    """Test the workspace-size query."""

    def test_query_returns_positive_size(self):
        lwork = wls_workspace_size(100, 5)
        assert isinstance(lwork, int)
        assert lwork >= 5

    def test_query_does_not_fit(self):
        """A workspace query leaves the buffers untouched."""
        x, y = _design()
        data, est, work = _setup(x, y, np.ones(len(y)))
        wls_workspace_size(data.n, data.p)
        assert not work.has_qr
        assert np.all(np.isnan(est.beta))


class TestFitWLS:
    """Test the weighted least squares fit."""

    def test_unit_weights_match_lstsq(self):
        """With unit weights, coefficients equal ordinary least squares."""
        x, y = _design()
        data, est, work = _setup(x, y, np.ones(len(y)))
        status = fit_wls(data, est, np.ones(len(y), dtype=bool), work)

        assert status is BaconStatus.OK
        expected = np.linalg.lstsq(x, y, rcond=None)[0]
        np.testing.assert_allclose(est.beta, expected, rtol=1e-12, atol=1e-12)
        np.testing.assert_allclose(est.resid, y - x @ expected, atol=1e-12)

    def test_weighted_fit(self):
        """Weighted fit solves the weighted normal equations."""
        x, y = _design()
        w = np.random.default_rng(0).uniform(0.2, 3.0, len(y))
        data, est, work = _setup(x, y, w)
        assert fit_wls(data, est, np.ones(len(y), dtype=bool), work) is BaconStatus.OK

        xtwx = x.T @ (w[:, np.newaxis] * x)
        expected = np.linalg.solve(xtwx, x.T @ (w * y))
        np.testing.assert_allclose(est.beta, expected, rtol=1e-10)

    def test_subset_fit_and_full_residuals(self):
        """Only the subset is fitted; residuals cover all observations."""
        x, y = _design()
        subset = np.zeros(len(y), dtype=bool)
        subset[:20] = True
        data, est, work = _setup(x, y, np.ones(len(y)))
        assert fit_wls(data, est, subset, work) is BaconStatus.OK

        expected = np.linalg.lstsq(x[:20], y[:20], rcond=None)[0]
        np.testing.assert_allclose(est.beta, expected, rtol=1e-10)
        np.testing.assert_allclose(est.resid, y - x @ expected, atol=1e-10)

    def test_caller_design_untouched(self):
        """The factorization overwrites the private buffer only."""
        x, y = _design()
        x_copy = x.copy()
        data, est, work = _setup(x, y, np.ones(len(y)))
        fit_wls(data, est, np.ones(len(y), dtype=bool), work)
        np.testing.assert_array_equal(data.x, x_copy)
        assert work.has_qr

    def test_duplicated_column_is_rank_deficient(self):
        """An exactly duplicated column is detected."""
        x, y = _design()
        x = np.column_stack([x, x[:, 1]])
        data, est, work = _setup(x, y, np.ones(len(y)))
        status = fit_wls(data, est, np.ones(len(y), dtype=bool), work)
        assert status is BaconStatus.RANK_DEFICIENT
        assert np.all(np.isnan(est.beta))

    def test_too_small_subset_is_rank_deficient(self):
        """Fewer observations than coefficients cannot give full rank."""
        x, y = _design(p=4)
        subset = np.zeros(len(y), dtype=bool)
        subset[:3] = True
        data, est, work = _setup(x, y, np.ones(len(y)))
        assert fit_wls(data, est, subset, work) is BaconStatus.RANK_DEFICIENT

    def test_rank_tolerance(self):
        assert RANK_TOLERANCE == pytest.approx(np.sqrt(np.finfo(float).eps))


class TestCholFromQR:
    """Test extraction of the Cholesky factor from the QR factorization."""

    def test_factor_reproduces_crossproduct(self):
        x, y = _design()
        w = np.random.default_rng(1).uniform(0.5, 2.0, len(y))
        data, est, work = _setup(x, y, w)
        fit_wls(data, est, np.ones(len(y), dtype=bool), work)

        L = chol_from_qr(work.wx, est.L)
        assert np.all(np.diag(L) > 0)
        np.testing.assert_allclose(np.triu(L, 1), 0.0)
        np.testing.assert_allclose(L @ L.T, x.T @ (w[:, np.newaxis] * x), rtol=1e-10, atol=1e-9)
