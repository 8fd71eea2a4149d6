"""
pybacon: robust linear regression by the weighted BACON algorithm.

Copyright (C) 2024 The pybacon developers
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .bacon import wbacon_reg, BaconRegression
from ._core import BaconConfig, BaconResult, BaconStatus, wbacon_reg_core

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

__all__ = [
    'wbacon_reg',
    'BaconRegression',
    'BaconConfig',
    'BaconResult',
    'BaconStatus',
    'wbacon_reg_core',
    'get_backend',
    'list_available_backends',
]
