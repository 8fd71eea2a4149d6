"""
Per-call state of a BACON regression: data, estimate and work buffers.

Everything here is allocated once per call and dropped when the call
returns; nothing is shared between calls.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RegData:
    """Immutable regression data plus the derived sqrt(weight)."""
    x: np.ndarray            # design matrix, shape (n, p), Fortran order
    y: np.ndarray            # response, shape (n,)
    w: np.ndarray            # weights, shape (n,)
    w_sqrt: np.ndarray       # sqrt(w), computed once
    eligible: np.ndarray     # w > 0

    @property
    def n(self) -> int:
        return self.x.shape[0]

    @property
    def p(self) -> int:
        return self.x.shape[1]

    @classmethod
    def from_arrays(cls, x, y, w) -> "RegData":
        x = np.asfortranarray(x, dtype=np.float64)
        y = np.ascontiguousarray(y, dtype=np.float64)
        w = np.ascontiguousarray(w, dtype=np.float64)
        return cls(x=x, y=y, w=w, w_sqrt=np.sqrt(w), eligible=w > 0)


@dataclass
class Estimate:
    """
    Current regression estimate.

    L and xty are the only quantities carried across iterations; the
    rest is recomputed from them (or from a fresh fit).
    """
    beta: np.ndarray         # coefficients, shape (p,)
    resid: np.ndarray        # residuals, shape (n,)
    dist: np.ndarray         # discrepancies t_i, shape (n,)
    L: np.ndarray            # lower-triangular Cholesky factor, shape (p, p)
    xty: np.ndarray          # weighted X'y over the subset, shape (p,)
    sigma: float = 1.0       # scale, fixed during the run

    @classmethod
    def allocate(cls, n: int, p: int, dist: Optional[np.ndarray] = None) -> "Estimate":
        return cls(
            beta=np.full(p, np.nan),
            resid=np.full(n, np.nan),
            dist=np.zeros(n) if dist is None else np.array(dist, dtype=np.float64),
            L=np.zeros((p, p)),
            xty=np.zeros(p),
        )


@dataclass
class Workspace:
    """
    Reusable scratch space, sized once per call.

    Attributes
    ----------
    lwork : int
        Length of the LAPACK gels work array (from the workspace query)
    wx, wy : ndarray
        Weighted copies of design and response; wx holds the QR
        factorization after a fit
    work_n : ndarray
        Length-n scratch (hat diagonal)
    work_sel : ndarray
        Length-n scratch of the order-statistic selector
    work_p : ndarray
        Length-p scratch (rank-one update vector)
    L_backup, xty_backup : ndarray
        Snapshot of the factor and cross-product for rollback
    stack : list of int
        Pending downdates of a subset transition
    """
    lwork: int
    wx: np.ndarray
    wy: np.ndarray
    work_n: np.ndarray
    work_sel: np.ndarray
    work_p: np.ndarray
    L_backup: np.ndarray
    xty_backup: np.ndarray
    stack: List[int] = field(default_factory=list)
    has_qr: bool = False

    @classmethod
    def allocate(cls, n: int, p: int, lwork: int) -> "Workspace":
        return cls(
            lwork=lwork,
            wx=np.zeros((n, p), dtype=np.float64, order='F'),
            wy=np.zeros((n, 1), dtype=np.float64, order='F'),
            work_n=np.empty(n, dtype=np.float64),
            work_sel=np.empty(n, dtype=np.float64),
            work_p=np.empty(p, dtype=np.float64),
            L_backup=np.empty((p, p), dtype=np.float64),
            xty_backup=np.empty(p, dtype=np.float64),
        )
