"""
Reference implementation (NumPy) of the weighted BACON regression.

Recomputes everything from scratch; used to validate the incremental engine.
"""

from .bacon import bacon_reg_reference, ReferenceResult

__all__ = [
    "bacon_reg_reference",
    "ReferenceResult",
]
