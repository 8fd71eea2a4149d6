"""
Weighted BACON algorithm for robust linear regression.

Implements Algorithms 4 and 5 of Billor et al. (2000), adapted for
weighting:

    Step 0  initial regression on the starting subset (enlarged until
            the design has full rank)
    Step 1  (Algorithm 4) grow a basic subset from p + 1 observations to
            collect * p, maintaining the Cholesky factor of X'WX by
            rank-one up- and downdates
    Step 2  (Algorithm 5) refit and re-select all observations whose
            discrepancy is below a Student-t cutoff, until the subset
            no longer changes

Billor, N., Hadi, A.S. and Velleman, P.F. (2000). BACON: Blocked Adaptive
Computationally efficient Outlier Nominators. Computational Statistics
and Data Analysis 34, pp. 279-298.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from scipy import stats

from .cholesky import cholesky_reg, update_chol_xty
from .config import BaconConfig
from .diagnostics import compute_ti
from .errors import BaconStatus
from .select import select_subset, smallest_excluded
from .workspace import Estimate, RegData, Workspace
from .wls import chol_from_qr, fit_wls, wls_workspace_size

logger = logging.getLogger(__name__)


@dataclass
class BaconResult:
    """Outcome of a weighted BACON regression."""
    coefficients: np.ndarray    # shape (p,); NaN if no fit was obtained
    residuals: np.ndarray       # shape (n,)
    subset: np.ndarray          # final subset (outlier-free observations)
    dist: np.ndarray            # final discrepancies t_i
    m: int                      # size of the final subset
    iterations: int             # iterations of Step 2
    success: bool
    status: BaconStatus
    stage: str                  # 'initialize', 'grow', 'converge' or 'done'
    sigma: float                # scale used for the discrepancies
    qr: Optional[np.ndarray] = None     # last QR factorization of sqrt(W) X (LAPACK layout)
    chol: Optional[np.ndarray] = None   # last Cholesky factor of X'WX

    @property
    def outliers(self) -> np.ndarray:
        """Indicator of observations flagged as outliers."""
        return ~self.subset


class BaconRun:
    """
    State of one regression call.

    Owns the data, the estimate and the work buffers; nothing survives
    the call.
    """

    def __init__(
        self,
        x: np.ndarray,
        y: np.ndarray,
        w: np.ndarray,
        dist: np.ndarray,
        config: BaconConfig,
        backend=None,
        should_stop: Optional[Callable[[], bool]] = None,
    ):
        if backend is None:
            from .._backends import get_backend
            backend = get_backend('cpu', n_jobs=config.n_jobs,
                                  parallel_threshold=config.parallel_threshold)
        self.data = RegData.from_arrays(x, y, w)
        n, p = self.data.n, self.data.p
        self.est = Estimate.allocate(n, p, dist)
        self.work = Workspace.allocate(n, p, wls_workspace_size(n, p))
        self.config = config
        self.backend = backend
        self.should_stop = should_stop
        self.level = logging.INFO if config.verbose else logging.DEBUG
        self.iterations = 0

    def _trace(self, msg, *args):
        logger.log(self.level, msg, *args)

    def _stopped(self) -> bool:
        return self.should_stop is not None and bool(self.should_stop())

    def _residuals(self):
        np.subtract(self.data.y, self.data.x @ self.est.beta, out=self.est.resid)

    def _scale(self, subset: np.ndarray) -> float:
        """Weighted residual standard deviation over the subset."""
        w = self.data.w[subset]
        r = self.est.resid[subset]
        dof = w.sum() - self.data.p
        sigma = np.sqrt(np.sum(w * r * r) / dof) if dof > 0 else np.nan
        if not np.isfinite(sigma) or sigma <= 0:
            warnings.warn(
                "Residual scale of the initial subset is not positive; "
                "using sigma = 1. Supply sigma explicitly.",
                RuntimeWarning
            )
            sigma = 1.0
        return float(sigma)

    def initialize(self, subset: np.ndarray, sigma: Optional[float] = None) -> BaconStatus:
        """
        Step 0: regression on the starting subset.

        If the design is rank deficient on the subset, observations with
        the smallest discrepancies are added one at a time until it has
        full rank. On success, L and xty represent the subset and
        est.dist holds the t_i's.
        """
        data, est, work = self.data, self.est, self.work
        if int(data.eligible.sum()) <= data.p:
            return BaconStatus.RANK_DEFICIENT

        status = fit_wls(data, est, subset, work)
        while status is BaconStatus.RANK_DEFICIENT:
            idx = smallest_excluded(est.dist, subset, data.eligible)
            if idx < 0:
                break
            subset[idx] = True
            status = fit_wls(data, est, subset, work)

        self._trace("Step 0: initial subset, m = %d", int(subset.sum()))
        if status is not BaconStatus.OK:
            return status

        chol_from_qr(work.wx, est.L)
        self.backend.crossprod_xty(data.x, data.y, data.w, subset, out=est.xty)
        est.sigma = self._scale(subset) if sigma is None else float(sigma)

        return compute_ti(data, est, work, subset, self.backend)

    def grow(self, subset0: np.ndarray, subset1: np.ndarray) -> BaconStatus:
        """
        Step 1 (Algorithm 4): grow the basic subset by one observation per
        iteration until it holds collect * p observations.

        subset0 is the subset L and xty currently represent; on return
        both arrays hold the final basic subset.
        """
        data, est, work = self.data, self.est, self.work
        p = data.p
        target = min(self.config.collect * p, int(data.eligible.sum()))

        self._trace("Step 1 (Algorithm 4):")
        m = p + 1
        select_subset(est.dist, m, out=subset1, buffer=work.work_sel,
                      eligible=data.eligible)

        while True:
            if self._stopped():
                return BaconStatus.INTERRUPTED
            self._trace("  m = %d", m)

            status = update_chol_xty(data, est, work, subset0, subset1,
                                     self.config.verbose)

            # L is not well defined; admit observations until it is
            while status is not BaconStatus.OK:
                idx = smallest_excluded(est.dist, subset1, data.eligible)
                if idx < 0 or m >= target:
                    return status
                subset1[idx] = True
                m += 1
                self._trace("  m = %d", m)
                status = update_chol_xty(data, est, work, subset0, subset1,
                                         self.config.verbose)

            np.copyto(subset0, subset1)

            cholesky_reg(est.L, est.xty, out=est.beta)
            self._residuals()

            status = compute_ti(data, est, work, subset1, self.backend)
            if status is not BaconStatus.OK:
                return status

            m += 1
            if m > target:
                break
            select_subset(est.dist, m, out=subset1, buffer=work.work_sel,
                          eligible=data.eligible)

        return BaconStatus.OK

    def converge(self, subset0: np.ndarray, subset1: np.ndarray) -> BaconStatus:
        """
        Step 2 (Algorithm 5): refit on subset0 and select all observations
        with t_i below the cutoff into subset1, until the two agree.

        On return, subset0 is the subset of the last fit.
        """
        data, est, work = self.data, self.est, self.work
        p = data.p
        alpha = self.config.alpha

        self._trace("Step 2 (Algorithm 5):")
        for it in range(1, self.config.maxiter + 1):
            if self._stopped():
                return BaconStatus.INTERRUPTED

            m = int(subset0.sum())
            if m <= p:
                return BaconStatus.RANK_DEFICIENT

            status = fit_wls(data, est, subset0, work)
            if status is not BaconStatus.OK:
                return status
            chol_from_qr(work.wx, est.L)
            self.backend.crossprod_xty(data.x, data.y, data.w, subset0, out=est.xty)

            status = compute_ti(data, est, work, subset0, self.backend)
            if status is not BaconStatus.OK:
                return status

            cutoff = stats.t.isf(alpha / (2.0 * (m + 1)), m - p)
            np.less(est.dist, cutoff, out=subset1)
            self.iterations = it

            if np.array_equal(subset0, subset1):
                return BaconStatus.OK

            self._trace("  m = %d", int(subset1.sum()))
            if it < self.config.maxiter:
                np.copyto(subset0, subset1)

        return BaconStatus.CONVERGENCE_FAILURE

    def run(self, subset: np.ndarray, sigma: Optional[float] = None) -> BaconResult:
        """Run Steps 0-2 from the starting subset."""
        data = self.data
        subset0 = np.array(subset, dtype=bool) & data.eligible
        subset1 = np.zeros(data.n, dtype=bool)

        stage = "initialize"
        status = self.initialize(subset0, sigma)
        if status is BaconStatus.OK:
            stage = "grow"
            status = BaconStatus.INTERRUPTED if self._stopped() else self.grow(subset0, subset1)
        if status is BaconStatus.OK:
            stage = "converge"
            status = BaconStatus.INTERRUPTED if self._stopped() else self.converge(subset0, subset1)
            if status is BaconStatus.OK:
                stage = "done"

        if status is not BaconStatus.OK:
            self._trace("Error: %s (%s)", status.message(), stage)

        return self._result(subset0, status, stage)

    def _result(self, subset: np.ndarray, status: BaconStatus, stage: str) -> BaconResult:
        est, work = self.est, self.work
        surfaced = stage in ("converge", "done") and work.has_qr
        return BaconResult(
            coefficients=est.beta.copy(),
            residuals=est.resid.copy(),
            subset=subset.copy(),
            dist=est.dist.copy(),
            m=int(subset.sum()),
            iterations=self.iterations,
            success=status is BaconStatus.OK,
            status=status,
            stage=stage,
            sigma=est.sigma,
            qr=work.wx.copy() if surfaced else None,
            chol=est.L.copy() if stage != "initialize" else None,
        )


def wbacon_reg_core(
    x: np.ndarray,
    y: np.ndarray,
    w: np.ndarray,
    subset: np.ndarray,
    dist: np.ndarray,
    config: Optional[BaconConfig] = None,
    sigma: Optional[float] = None,
    backend=None,
    should_stop: Optional[Callable[[], bool]] = None,
) -> BaconResult:
    """
    Weighted BACON regression on validated inputs.

    Numerical failures are reported through the result (success, status,
    stage); nothing is raised for them.

    Parameters
    ----------
    x : ndarray, shape (n, p)
        Design matrix (including an intercept column, if any)
    y : ndarray, shape (n,)
        Response vector
    w : ndarray, shape (n,)
        Non-negative weights; zero excludes an observation
    subset : ndarray of bool, shape (n,)
        Starting subset
    dist : ndarray, shape (n,)
        Distances belonging to the starting subset; used to enlarge it
        if the design is rank deficient
    config : BaconConfig, optional
        alpha, maxiter, collect, verbose, threading
    sigma : float, optional
        Scale of the discrepancies; derived from the Step 0 fit if None
    backend : BackendBase, optional
        Kernel backend (default: CPU)
    should_stop : callable, optional
        Polled between phases and iterations; returning True ends the
        run with status INTERRUPTED

    Returns
    -------
    BaconResult
    """
    config = config if config is not None else BaconConfig()
    run = BaconRun(x, y, w, dist, config, backend=backend, should_stop=should_stop)
    return run.run(subset, sigma)
