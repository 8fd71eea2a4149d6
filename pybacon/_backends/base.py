"""
Abstract base classes for backends.

A backend supplies the two data-parallel kernels of the BACON
regression: the weighted cross-product X'Wy and the diagonal of the
hat matrix. Everything else runs on the orchestrating thread.
"""

from abc import ABC, abstractmethod
import numpy as np
from typing import Optional


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name = "base"
    precision = "fp64"

    @abstractmethod
    def crossprod_xty(
        self,
        x: np.ndarray,
        y: np.ndarray,
        w: np.ndarray,
        subset: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Weighted cross-product restricted to a subset.

        Parameters
        ----------
        x : ndarray, shape (n, p)
            Design matrix
        y : ndarray, shape (n,)
            Response vector
        w : ndarray, shape (n,)
            Observation weights
        subset : ndarray of bool, shape (n,)
            Active subset
        out : ndarray, shape (p,), optional
            Output array

        Returns
        -------
        ndarray, shape (p,)
            sum over the subset of w_i * x_i * y_i
        """
        pass

    @abstractmethod
    def hat_diagonal(
        self,
        x: np.ndarray,
        w: np.ndarray,
        L_inv: np.ndarray,
        out: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """
        Diagonal of the weighted hat matrix.

        Parameters
        ----------
        x : ndarray, shape (n, p)
            Design matrix
        w : ndarray, shape (n,)
            Observation weights
        L_inv : ndarray, shape (p, p)
            Inverse of the lower-triangular Cholesky factor
        out : ndarray, shape (n,), optional
            Output array

        Returns
        -------
        ndarray, shape (n,)
            w_i * ||L^{-1} x_i||^2, the row sums of (X L^{-T})^2 times w
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass


class CPUBackend(BackendBase):
    """CPU backend base class (always FP64)."""
    pass


class GPUBackendFP64(BackendBase):
    """GPU backend base class for FP64."""
    pass
