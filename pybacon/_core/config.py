"""
Tuning parameters of the weighted BACON regression.
"""

from dataclasses import dataclass
from typing import Optional


# n * p above which the data-parallel kernels use a thread pool
PARALLEL_MIN_SIZE = 100_000


@dataclass
class BaconConfig:
    """
    Configuration of a weighted BACON regression run.

    Attributes
    ----------
    alpha : float
        Significance level; the cutoff is the (1 - alpha / (2 (m + 1)))
        quantile of the Student t-distribution with m - p df
    maxiter : int
        Maximum number of iterations of the re-weighting phase
    collect : int
        The subset-growth phase stops at a subset of size collect * p
    verbose : bool
        Emit the progress trace at INFO instead of DEBUG level
    parallel_threshold : int
        Problem size (n * p) above which the kernels run on threads
    n_jobs : int, optional
        Number of worker threads (default: os.cpu_count())
    """
    alpha: float = 0.05
    maxiter: int = 50
    collect: int = 4
    verbose: bool = False
    parallel_threshold: int = PARALLEL_MIN_SIZE
    n_jobs: Optional[int] = None

    def validate(self) -> "BaconConfig":
        """Check parameter ranges; returns self."""
        if not 0.0 < self.alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {self.alpha}")
        if int(self.maxiter) != self.maxiter or self.maxiter < 1:
            raise ValueError(f"maxiter must be a positive integer, got {self.maxiter}")
        if int(self.collect) != self.collect or self.collect < 1:
            raise ValueError(f"collect must be a positive integer, got {self.collect}")
        if self.parallel_threshold < 0:
            raise ValueError("parallel_threshold must be non-negative")
        if self.n_jobs is not None and self.n_jobs < 1:
            raise ValueError(f"n_jobs must be positive, got {self.n_jobs}")
        return self
