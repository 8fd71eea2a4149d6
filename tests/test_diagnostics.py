"""
Test the hat-matrix diagonal and the discrepancies t_i.
"""

import numpy as np

from pybacon._backends import get_backend
from pybacon._core.diagnostics import compute_ti, hat_matrix
from pybacon._core.errors import BaconStatus
from pybacon._core.workspace import Estimate, RegData, Workspace
from pybacon.reference.bacon import discrepancies


def _state(n=30, p=3, seed=11, w=None):
    rng = np.random.default_rng(seed)
    x = np.column_stack([np.ones(n), rng.standard_normal((n, p - 1))])
    y = rng.standard_normal(n)
    w = np.ones(n) if w is None else w
    subset = np.zeros(n, dtype=bool)
    subset[: n // 2] = True

    data = RegData.from_arrays(x, y, w)
    est = Estimate.allocate(n, p)
    xtwx = x.T @ ((w * subset)[:, np.newaxis] * x)
    est.L[:] = np.linalg.cholesky(xtwx)
    est.beta[:] = np.linalg.solve(xtwx, x.T @ (w * subset * y))
    est.resid[:] = y - x @ est.beta
    est.sigma = 0.7
    work = Workspace.allocate(n, p, lwork=1)
    return data, est, work, subset, xtwx


class TestHatMatrix:
    """Test the weighted leverages."""

    def test_leverages(self):
        data, est, work, subset, xtwx = _state()
        hat = np.empty(data.n)
        status = hat_matrix(data, est.L, get_backend('cpu'), out=hat)
        assert status is BaconStatus.OK
        expected = np.einsum('ij,ij->i', data.x @ np.linalg.inv(xtwx), data.x)
        np.testing.assert_allclose(hat, expected, rtol=1e-10)

    def test_singular_factor(self):
        """A zero on the diagonal of L cannot be inverted."""
        data, est, work, subset, _ = _state()
        est.L[1, 1] = 0.0
        status = hat_matrix(data, est.L, get_backend('cpu'), out=np.empty(data.n))
        assert status is BaconStatus.TRIANGULAR_SINGULAR


class TestComputeTi:
    """Test the discrepancy statistic."""

    def test_sign_depends_on_membership(self):
        """1 - h_i inside the subset, 1 + h_i outside."""
        data, est, work, subset, xtwx = _state()
        assert compute_ti(data, est, work, subset, get_backend('cpu')) is BaconStatus.OK

        hat = np.einsum('ij,ij->i', data.x @ np.linalg.inv(xtwx), data.x)
        factor = np.where(subset, 1.0 - hat, 1.0 + hat)
        expected = np.abs(est.resid) / (est.sigma * np.sqrt(factor))
        np.testing.assert_allclose(est.dist, expected, rtol=1e-10)

    def test_weights_scale_leverage(self):
        """The leverage correction carries the observation weight."""
        n = 30
        w = np.linspace(0.5, 2.0, n)
        data, est, work, subset, xtwx = _state(w=w)
        compute_ti(data, est, work, subset, get_backend('cpu'))

        hat = w * np.einsum('ij,ij->i', data.x @ np.linalg.inv(xtwx), data.x)
        factor = 1.0 + (1.0 - 2.0 * subset) * hat
        np.testing.assert_allclose(
            est.dist, np.abs(est.resid) / (est.sigma * np.sqrt(factor)), rtol=1e-10
        )

    def test_zero_weight_is_infinite(self):
        """Observations with zero weight never qualify."""
        n = 30
        w = np.ones(n)
        w[-1] = 0.0
        data, est, work, subset, _ = _state(w=w)
        compute_ti(data, est, work, subset, get_backend('cpu'))
        assert np.isinf(est.dist[-1])
        assert np.all(np.isfinite(est.dist[:-1]))

    def test_singular_factor_propagates(self):
        data, est, work, subset, _ = _state()
        est.L[0, 0] = 0.0
        status = compute_ti(data, est, work, subset, get_backend('cpu'))
        assert status is BaconStatus.TRIANGULAR_SINGULAR

    def test_exact_fit_in_subset_is_zero(self):
        """Leverage 1 inside the subset (an exact fit) gives t_i = 0."""
        rng = np.random.default_rng(12)
        n, p = 30, 3
        # the indicator column is nonzero for observation 0 only
        indicator = np.zeros(n)
        indicator[0] = 1.0
        x = np.column_stack([np.ones(n), rng.standard_normal(n), indicator])
        y = rng.standard_normal(n)
        w = np.ones(n)
        subset = np.zeros(n, dtype=bool)
        subset[:15] = True

        data = RegData.from_arrays(x, y, w)
        est = Estimate.allocate(n, p)
        xtwx = x.T @ (subset[:, np.newaxis] * x)
        est.L[:] = np.linalg.cholesky(xtwx)
        est.beta[:] = np.linalg.solve(xtwx, x.T @ (subset * y))
        est.resid[:] = y - x @ est.beta
        est.sigma = 1.0
        work = Workspace.allocate(n, p, lwork=1)

        assert compute_ti(data, est, work, subset, get_backend('cpu')) is BaconStatus.OK
        assert est.dist[0] == 0.0
        assert np.all(est.dist[1:] > 0)

        _, expected = discrepancies(x, y, w, subset, est.beta, 1.0)
        assert expected[0] == 0.0
        np.testing.assert_allclose(est.dist, expected, rtol=1e-8, atol=1e-12)
