"""
Reference weighted BACON regression (NumPy).

Refits every subset from scratch and ranks by full sorting. Slow, but
free of the incremental machinery of the engine; used to cross-check it.
"""

import numpy as np
from dataclasses import dataclass
from scipy import stats


@dataclass
class ReferenceResult:
    """Results from the reference implementation."""
    coef: np.ndarray
    residuals: np.ndarray
    subset: np.ndarray
    dist: np.ndarray
    iterations: int
    converged: bool


def wls(x, y, w, subset):
    """Weighted least squares on a subset; None if rank deficient."""
    sw = np.sqrt(w * subset)
    xw = x * sw[:, np.newaxis]
    if np.linalg.matrix_rank(xw) < x.shape[1]:
        return None
    coef = np.linalg.lstsq(xw, y * sw, rcond=None)[0]
    return coef


def discrepancies(x, y, w, subset, coef, sigma):
    """t_i = |r_i| / (sigma sqrt(1 -/+ h_i)) with explicit (X'WX)^{-1}."""
    xtwx = (x * (w * subset)[:, np.newaxis]).T @ x
    hat = w * np.einsum('ij,ij->i', x @ np.linalg.inv(xtwx), x)
    resid = y - x @ coef
    factor = np.where(subset, 1 - hat, 1 + hat)
    with np.errstate(invalid='ignore', divide='ignore'):
        dist = np.abs(resid) / (sigma * np.sqrt(factor))
    # exact fits inside the subset
    dist[subset & (factor <= np.sqrt(np.finfo(float).eps))] = 0.0
    dist[w <= 0] = np.inf
    return resid, dist


def smallest(dist, m, eligible):
    """Observations with the m smallest dist (ties included), by sorting."""
    threshold = np.sort(dist)[m - 1]
    return (dist <= threshold) & eligible


def bacon_reg_reference(x, y, w, subset, dist, sigma, alpha=0.05, collect=4,
                        maxiter=50):
    """
    Weighted BACON regression, recomputed from scratch at every step.

    Parameters mirror pybacon.wbacon_reg; sigma must be given.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    w = np.asarray(w, dtype=np.float64)
    n, p = x.shape
    eligible = w > 0
    subset = np.asarray(subset, dtype=bool) & eligible

    # Step 0
    order = [i for i in np.argsort(dist, kind='stable') if eligible[i]]
    coef = wls(x, y, w, subset)
    while coef is None:
        remaining = [i for i in order if not subset[i]]
        if not remaining:
            raise ValueError("rank deficient design")
        subset[remaining[0]] = True
        coef = wls(x, y, w, subset)
    resid, dist = discrepancies(x, y, w, subset, coef, sigma)

    # Step 1
    target = min(collect * p, int(eligible.sum()))
    m = p + 1
    subset = smallest(dist, m, eligible)
    while True:
        coef = wls(x, y, w, subset)
        if coef is None:
            raise ValueError("rank deficient basic subset")
        resid, dist = discrepancies(x, y, w, subset, coef, sigma)
        m += 1
        if m > target:
            break
        subset = smallest(dist, m, eligible)

    # Step 2
    for it in range(1, maxiter + 1):
        m = int(subset.sum())
        coef = wls(x, y, w, subset)
        resid, dist = discrepancies(x, y, w, subset, coef, sigma)
        cutoff = stats.t.isf(alpha / (2.0 * (m + 1)), m - p)
        new_subset = dist < cutoff
        if np.array_equal(new_subset, subset):
            return ReferenceResult(coef, resid, subset, dist, it, True)
        if it == maxiter:
            break
        subset = new_subset

    return ReferenceResult(coef, resid, subset, dist, maxiter, False)
