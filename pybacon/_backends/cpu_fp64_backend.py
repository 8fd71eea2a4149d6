"""
CPU backend using NumPy.

Column-wise kernels; above a size threshold the columns are spread over
a thread pool. Each column is computed by the same call whatever the
number of threads and the reduction runs in a fixed order, so results
do not depend on the thread count.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

import numpy as np

from .base import CPUBackend
from .._core.config import PARALLEL_MIN_SIZE


class CPUBackendFP64(CPUBackend):
    """
    CPU backend using NumPy.

    Parameters
    ----------
    n_jobs : int, optional
        Number of worker threads (default: os.cpu_count())
    parallel_threshold : int
        Problem size n * p above which the thread pool is used
    """

    def __init__(self, n_jobs: Optional[int] = None,
                 parallel_threshold: int = PARALLEL_MIN_SIZE):
        self.name = "cpu_fp64"
        self.precision = "fp64"
        self.n_jobs = n_jobs if n_jobs is not None else (os.cpu_count() or 1)
        self.parallel_threshold = parallel_threshold

    def _map_columns(self, fn: Callable[[int], np.ndarray], n: int, p: int) -> List:
        """Evaluate fn(j) for j = 0..p-1, in parallel if the problem is large."""
        if self.n_jobs > 1 and p > 1 and n * p > self.parallel_threshold:
            with ThreadPoolExecutor(max_workers=min(self.n_jobs, p)) as pool:
                return list(pool.map(fn, range(p)))
        return [fn(j) for j in range(p)]

    def crossprod_xty(self, x, y, w, subset, out=None):
        n, p = x.shape
        if out is None:
            out = np.empty(p, dtype=np.float64)
        v = np.where(subset, w * y, 0.0)

        # one output slot per column
        out[:] = self._map_columns(lambda j: np.dot(x[:, j], v), n, p)
        return out

    def hat_diagonal(self, x, w, L_inv, out=None):
        n, p = x.shape
        if out is None:
            out = np.empty(n, dtype=np.float64)

        # column j of X L^{-T}; L^{-1} is lower triangular
        def column(j):
            return x[:, :j + 1] @ L_inv[j, :j + 1]

        columns = self._map_columns(column, n, p)
        out[:] = 0.0
        for z in columns:
            out += z * z
        out *= w
        return out

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'cpu',
            'precision': 'fp64',
            'threads': self.n_jobs,
            'parallel_threshold': self.parallel_threshold,
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
