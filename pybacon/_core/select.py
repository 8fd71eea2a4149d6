"""
Order-statistic selection.

Partial selection (introselect via ndarray.partition) instead of sorting:
used to pick the m observations with the smallest discrepancies and to
compute weighted quantiles.
"""

import numpy as np
from typing import Optional


def select_k(x: np.ndarray, k: int) -> float:
    """
    Select the k-th smallest element (0-based) of x in place.

    On return, x[k] holds the k-th order statistic, no element before
    position k is larger and no element after it is smaller; x is
    otherwise unordered.

    Parameters
    ----------
    x : ndarray, shape (n,)
        Array to be partitioned (modified in place)
    k : int
        Target rank, 0 <= k < n

    Returns
    -------
    float
        The k-th smallest element
    """
    n = x.shape[0]
    if not 0 <= k < n:
        raise ValueError(f"k must be in [0, {n - 1}], got {k}")
    x.partition(k)
    return x[k]


def select_subset(
    dist: np.ndarray,
    m: int,
    out: Optional[np.ndarray] = None,
    buffer: Optional[np.ndarray] = None,
    eligible: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Flag the m observations with the smallest values of dist.

    All elements <= the m-th smallest value are flagged, hence ties at
    the threshold admit more than m elements. dist itself is not
    reordered; the selection runs on `buffer`.

    Parameters
    ----------
    dist : ndarray, shape (n,)
        Discrepancies
    m : int
        Number of observations to select, 1 <= m <= n
    out : ndarray of bool, optional
        Subset indicator to overwrite
    buffer : ndarray, optional
        Scratch array of length n
    eligible : ndarray of bool, optional
        Observations that may enter the subset at all

    Returns
    -------
    ndarray of bool
        Subset indicator
    """
    n = dist.shape[0]
    if buffer is None:
        buffer = np.empty(n, dtype=np.float64)
    if out is None:
        out = np.empty(n, dtype=bool)

    np.copyto(buffer, dist)
    threshold = select_k(buffer, m - 1)
    np.less_equal(dist, threshold, out=out)
    if eligible is not None:
        out &= eligible
    return out


def smallest_excluded(dist: np.ndarray, subset: np.ndarray,
                      eligible: Optional[np.ndarray] = None) -> int:
    """
    Index of the observation with the smallest dist among those not in
    the subset; -1 if there is none.
    """
    candidates = ~subset
    if eligible is not None:
        candidates &= eligible
    if not np.any(candidates):
        return -1
    masked = np.where(candidates, dist, np.inf)
    # NaN discrepancies are admitted last
    masked[np.isnan(masked)] = np.inf
    idx = int(np.argmin(masked))
    if not candidates[idx]:
        # all remaining candidates sit at +inf
        idx = int(np.flatnonzero(candidates)[0])
    return idx


def weighted_quantile(x, w, prob: float) -> float:
    """
    Weighted quantile by recursive selection (expected linear time).

    Returns the smallest x[j] such that the total weight of the
    elements <= x[j] is at least prob * sum(w). Zero weights are ignored.

    Parameters
    ----------
    x : array_like, shape (n,)
        Data
    w : array_like, shape (n,)
        Non-negative weights
    prob : float
        Probability in [0, 1]

    Returns
    -------
    float
        Weighted quantile
    """
    x = np.asarray(x, dtype=np.float64)
    w = np.asarray(w, dtype=np.float64)
    if x.shape != w.shape or x.ndim != 1:
        raise ValueError("x and w must be 1-dimensional and of equal length")
    if not 0.0 <= prob <= 1.0:
        raise ValueError(f"prob must be in [0, 1], got {prob}")

    keep = w > 0
    if not np.any(keep):
        raise ValueError("All weights are zero")
    x, w = x[keep], w[keep]

    target = prob * w.sum()
    acc = 0.0
    while x.shape[0] > 1:
        k = x.shape[0] // 2
        pivot = np.partition(x, k)[k]
        below = x < pivot
        equal = x == pivot
        w_below = w[below].sum()
        w_equal = w[equal].sum()

        if acc + w_below >= target and np.any(below):
            x, w = x[below], w[below]
        elif acc + w_below + w_equal >= target:
            return float(pivot)
        else:
            acc += w_below + w_equal
            above = ~(below | equal)
            if not np.any(above):
                return float(pivot)
            x, w = x[above], w[above]

    return float(x[0])


def weighted_median(x, w) -> float:
    """Weighted median (see weighted_quantile)."""
    return weighted_quantile(x, w, 0.5)
