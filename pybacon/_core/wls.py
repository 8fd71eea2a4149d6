"""
Weighted least squares on a subset of the observations.

The weighted design matrix is factorized by LAPACK gels (QR) into a
private buffer; the caller's design matrix is never touched.
"""

import numpy as np
from scipy.linalg import get_lapack_funcs

from .errors import BaconStatus
from .workspace import Estimate, RegData, Workspace


# Criterion to detect rank deficiency: |diag(R)| < sqrt(machine epsilon).
# gels itself only flags an exactly zero diagonal element.
RANK_TOLERANCE = np.sqrt(np.finfo(np.float64).eps)

_gels, _gels_lwork = get_lapack_funcs(('gels', 'gels_lwork'), dtype=np.float64)


def wls_workspace_size(n: int, p: int) -> int:
    """
    Workspace query: optimal length of the gels work array.

    No factorization is computed.
    """
    work, info = _gels_lwork(n, p, 1)
    if info != 0:
        raise ValueError(f"gels workspace query failed (info={info})")
    return max(int(np.real(work)), 1)


def fit_wls(data: RegData, est: Estimate, subset: np.ndarray,
            work: Workspace) -> BaconStatus:
    """
    Weighted least squares fit restricted to a subset.

    Rows are pre-multiplied by sqrt(w) (zero outside the subset) so the
    least-squares objective is the weighted residual sum of squares over
    the subset.

    Parameters
    ----------
    data : RegData
        Design matrix, response and weights
    est : Estimate
        On success, est.beta and est.resid are overwritten; residuals are
        y - X beta on the full, unweighted data
    subset : ndarray of bool, shape (n,)
        Active subset
    work : Workspace
        On return, work.wx holds the QR factorization (R in its upper
        triangle) as returned by LAPACK

    Returns
    -------
    BaconStatus
        OK, or RANK_DEFICIENT if any |diag(R)| < RANK_TOLERANCE
    """
    p = data.p
    sw = data.w_sqrt * subset
    np.multiply(data.x, sw[:, np.newaxis], out=work.wx)
    np.multiply(data.y, sw, out=work.wy[:, 0])

    lqr, sol, info = _gels(work.wx, work.wy, lwork=work.lwork,
                           overwrite_a=True, overwrite_b=True)
    if info < 0:
        raise ValueError(f"illegal value in argument {-info} of gels")
    work.wx, work.wy = lqr, sol
    work.has_qr = True

    if info > 0:
        return BaconStatus.RANK_DEFICIENT
    if np.any(np.abs(np.diagonal(lqr)[:p]) < RANK_TOLERANCE):
        return BaconStatus.RANK_DEFICIENT

    est.beta[:] = sol[:p, 0]
    np.subtract(data.y, data.x @ est.beta, out=est.resid)
    return BaconStatus.OK


def chol_from_qr(qr: np.ndarray, L: np.ndarray) -> np.ndarray:
    """
    Extract the Cholesky factor of X'WX from the R part of a QR
    factorization: L = R', with the signs of the columns of L chosen
    so that its diagonal is positive.
    """
    p = L.shape[0]
    L[:] = np.tril(qr[:p, :p].T)
    sign = np.sign(np.diagonal(L)).copy()
    sign[sign == 0] = 1.0
    L *= sign
    return L
