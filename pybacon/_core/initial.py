"""
Starting subset for the regression when the caller supplies none.
"""

import numpy as np
from typing import Tuple

from .select import select_subset, weighted_median


def initial_subset(x: np.ndarray, w: np.ndarray, m: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Select the m observations closest to the coordinate-wise weighted
    median of the design matrix.

    Parameters
    ----------
    x : ndarray, shape (n, p)
        Design matrix
    w : ndarray, shape (n,)
        Non-negative weights
    m : int
        Size of the subset (capped at the number of positive weights)

    Returns
    -------
    subset : ndarray of bool, shape (n,)
        Starting subset
    dist : ndarray, shape (n,)
        Euclidean distances to the weighted median
    """
    x = np.asarray(x, dtype=np.float64)
    w = np.asarray(w, dtype=np.float64)
    eligible = w > 0

    center = np.array([weighted_median(x[:, j], w) for j in range(x.shape[1])])
    dist = np.sqrt(np.sum((x - center) ** 2, axis=1))

    m = max(1, min(m, int(eligible.sum())))
    subset = select_subset(np.where(eligible, dist, np.inf), m, eligible=eligible)
    return subset, dist
