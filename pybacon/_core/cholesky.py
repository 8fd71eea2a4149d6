"""
Rank-one maintenance of the Cholesky factor of X'WX.

Golub, G.H. and Van Loan, C.F. (1996). Matrix Computations, 3rd ed.,
Baltimore: The Johns Hopkins University Press, ch. 12.5
"""

import logging

import numpy as np
from scipy.linalg import solve_triangular

from .errors import BaconStatus
from .workspace import Estimate, RegData, Workspace

logger = logging.getLogger(__name__)


def chol_update(L: np.ndarray, u: np.ndarray) -> None:
    """
    Rank-one update: overwrite L with the Cholesky factor of L L' + u u'.

    Parameters
    ----------
    L : ndarray, shape (p, p)
        Lower-triangular factor (modified in place)
    u : ndarray, shape (p,)
        Update vector (used as scratch, overwritten)
    """
    p = L.shape[0]
    for i in range(p):
        tmp = L[i, i]
        a = np.hypot(tmp, u[i])
        b = a / tmp
        c = u[i] / tmp
        L[i, i] = a

        col = L[i + 1:, i]
        col += c * u[i + 1:]
        col /= b
        u[i + 1:] = b * u[i + 1:] - c * col


def chol_downdate(L: np.ndarray, u: np.ndarray) -> BaconStatus:
    """
    Rank-one downdate: overwrite L with the Cholesky factor of L L' - u u'.

    Fails if L L' - u u' is not positive definite. L is downdated in
    place and is partially overwritten on failure; callers restore it
    from a backup (see update_chol_xty).

    Parameters
    ----------
    L : ndarray, shape (p, p)
        Lower-triangular factor (modified in place)
    u : ndarray, shape (p,)
        Downdate vector (used as scratch, overwritten)

    Returns
    -------
    BaconStatus
        OK or RANK_DEFICIENT
    """
    p = L.shape[0]
    for i in range(p):
        tmp = L[i, i]
        a = tmp * tmp - u[i] * u[i]
        if a <= 0.0:
            return BaconStatus.RANK_DEFICIENT
        a = np.sqrt(a)
        b = a / tmp
        c = u[i] / tmp
        L[i, i] = a

        col = L[i + 1:, i]
        col -= c * u[i + 1:]
        col /= b
        u[i + 1:] = b * u[i + 1:] - c * col

    return BaconStatus.OK


def update_chol_xty(data: RegData, est: Estimate, work: Workspace,
                    subset0: np.ndarray, subset1: np.ndarray,
                    verbose: bool = False) -> BaconStatus:
    """
    Move est.L and est.xty from subset0 to subset1.

    All admissions are applied first (they cannot fail); evictions are
    put on a stack and applied afterwards. If a downdate fails, L and
    xty are restored to their state before the transition.

    Returns
    -------
    BaconStatus
        OK or RANK_DEFICIENT (the caller should enlarge subset1)
    """
    level = logging.INFO if verbose else logging.DEBUG
    np.copyto(work.L_backup, est.L)
    np.copyto(work.xty_backup, est.xty)

    x, y, w, w_sqrt = data.x, data.y, data.w, data.w_sqrt
    u = work.work_p
    stack = work.stack
    stack.clear()

    n_update = 0
    for i in np.flatnonzero(subset1 != subset0):
        if subset1[i]:
            np.multiply(x[i], w_sqrt[i], out=u)
            est.xty += x[i] * (y[i] * w[i])
            chol_update(est.L, u)
            n_update += 1
        else:
            stack.append(int(i))

    for i in stack:
        np.multiply(x[i], w_sqrt[i], out=u)
        est.xty -= x[i] * (y[i] * w[i])
        if chol_downdate(est.L, u) is not BaconStatus.OK:
            np.copyto(est.L, work.L_backup)
            np.copyto(est.xty, work.xty_backup)
            logger.log(level, "  downdate failed, subset is increased")
            return BaconStatus.RANK_DEFICIENT

    logger.log(level, "  %d up- and %d downdates", n_update, len(stack))
    return BaconStatus.OK


def cholesky_reg(L: np.ndarray, xty: np.ndarray, out: np.ndarray = None) -> np.ndarray:
    """
    Regression coefficients from the maintained factor: solve
    L a = xty (forward), then L' beta = a (backward).
    """
    a = solve_triangular(L, xty, lower=True, check_finite=False)
    beta = solve_triangular(L, a, lower=True, trans='T', check_finite=False)
    if out is None:
        return beta
    out[:] = beta
    return out
