"""
Core algorithms (backend-agnostic).
"""

from .errors import BaconStatus
from .config import BaconConfig
from .select import select_k, select_subset, weighted_quantile, weighted_median
from .wls import fit_wls, wls_workspace_size
from .cholesky import chol_update, chol_downdate, cholesky_reg
from .initial import initial_subset
from .algorithm import BaconResult, BaconRun, wbacon_reg_core

__all__ = [
    "BaconStatus",
    "BaconConfig",
    "select_k",
    "select_subset",
    "weighted_quantile",
    "weighted_median",
    "fit_wls",
    "wls_workspace_size",
    "chol_update",
    "chol_downdate",
    "cholesky_reg",
    "initial_subset",
    "BaconResult",
    "BaconRun",
    "wbacon_reg_core",
]
