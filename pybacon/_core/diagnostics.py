"""
Leverage and discrepancy diagnostics.

Billor, N., Hadi, A.S. and Velleman, P.F. (2000). BACON: Blocked Adaptive
Computationally efficient Outlier Nominators. Computational Statistics
and Data Analysis 34, pp. 279-298.
"""

import numpy as np
from scipy.linalg import get_lapack_funcs

from .errors import BaconStatus
from .workspace import Estimate, RegData, Workspace

_trtri, = get_lapack_funcs(('trtri',), dtype=np.float64)

# Observations in the subset with 1 - h_i below this are fitted exactly;
# their residual is roundoff and t_i is set to 0.
LEVERAGE_TOLERANCE = np.sqrt(np.finfo(np.float64).eps)


def hat_matrix(data: RegData, L: np.ndarray, backend, out: np.ndarray) -> BaconStatus:
    """
    Diagonal of the weighted hat matrix, w_i x_i' (X'WX)^{-1} x_i.

    Inverts L, forms X L^{-T} and sums the squared rows.

    Returns
    -------
    BaconStatus
        OK, or TRIANGULAR_SINGULAR if L cannot be inverted
    """
    L_inv, info = _trtri(L, lower=1, unitdiag=0, overwrite_c=0)
    if info != 0:
        return BaconStatus.TRIANGULAR_SINGULAR

    backend.hat_diagonal(data.x, data.w, np.tril(L_inv), out=out)
    return BaconStatus.OK


def compute_ti(data: RegData, est: Estimate, work: Workspace,
               subset: np.ndarray, backend) -> BaconStatus:
    """
    Discrepancies t_i (Billor et al., 2000, Eq. 6), written to est.dist.

    t_i = |r_i| / (sigma * sqrt(1 + s_i * h_i)), with s_i = -1 for
    observations in the subset and +1 otherwise. Observations in the
    subset with leverage within LEVERAGE_TOLERANCE of 1 get t_i = 0;
    zero-weight observations get t_i = inf.
    """
    hat = work.work_n
    status = hat_matrix(data, est.L, backend, out=hat)
    if status is not BaconStatus.OK:
        return status

    # hat becomes 1 - h_i (subset) or 1 + h_i
    hat *= 1.0 - 2.0 * subset
    hat += 1.0
    with np.errstate(invalid='ignore', divide='ignore'):
        np.divide(np.abs(est.resid), est.sigma * np.sqrt(hat), out=est.dist)
    est.dist[subset & (hat <= LEVERAGE_TOLERANCE)] = 0.0
    est.dist[~data.eligible] = np.inf
    return BaconStatus.OK
