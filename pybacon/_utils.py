"""
Utility functions.
"""

import numpy as np


def check_array(X, name='X', dtype=np.float64):
    """Validate array input."""
    X = np.asarray(X, dtype=dtype)
    if X.ndim != 2:
        raise ValueError(f"{name} must be 2-dimensional")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or Inf")
    return X


def check_vector(y, name='y', dtype=np.float64, n=None):
    """Validate vector input."""
    y = np.asarray(y, dtype=dtype)
    if y.ndim != 1:
        raise ValueError(f"{name} must be 1-dimensional")
    if n is not None and y.shape[0] != n:
        raise ValueError(f"{name} must have length {n}, got {y.shape[0]}")
    if y.dtype.kind == 'f' and not np.all(np.isfinite(y)):
        raise ValueError(f"{name} contains NaN or Inf")
    return y


def check_weights(w, n):
    """Validate weights: finite, non-negative, length n (None: all ones)."""
    if w is None:
        return np.ones(n, dtype=np.float64)
    w = check_vector(w, name='weights', n=n)
    if np.any(w < 0):
        raise ValueError("weights must be non-negative")
    if not np.any(w > 0):
        raise ValueError("All weights are zero")
    return w


def check_subset(subset, n):
    """Validate a subset indicator of length n."""
    subset = check_vector(subset, name='subset', dtype=bool, n=n)
    if not np.any(subset):
        raise ValueError("subset is empty")
    return subset
