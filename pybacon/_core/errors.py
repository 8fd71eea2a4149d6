"""
Status kinds for the BACON regression engine.

Kernels report their outcome as a value, not by raising.
"""

from enum import Enum


class BaconStatus(Enum):
    """Outcome of a kernel or of a complete run."""
    OK = "ok"
    RANK_DEFICIENT = "rank_deficient"              # subset does not support a full-rank fit
    TRIANGULAR_SINGULAR = "triangular_singular"    # Cholesky factor could not be inverted
    CONVERGENCE_FAILURE = "convergence_failure"    # iteration budget exhausted
    INTERRUPTED = "interrupted"                    # stopped by the caller's check point

    @property
    def ok(self) -> bool:
        return self is BaconStatus.OK

    def message(self) -> str:
        """Human-readable description of the status."""
        return _MESSAGES[self]


_MESSAGES = {
    BaconStatus.OK: "no error",
    BaconStatus.RANK_DEFICIENT: "design matrix is rank deficient on the subset",
    BaconStatus.TRIANGULAR_SINGULAR: "triangular matrix is singular",
    BaconStatus.CONVERGENCE_FAILURE: "failed to converge within the iteration budget",
    BaconStatus.INTERRUPTED: "run was stopped by the caller",
}
