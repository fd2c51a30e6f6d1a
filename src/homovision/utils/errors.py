"""
Failure reasons and the result type returned by the estimation core.

Numerical failures (a singular matrix, a degenerate point configuration, no
RANSAC consensus) are reported as values rather than raised, so callers can
decide how to surface them.  Programming errors such as mismatched matrix
dimensions are raised as exceptions.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple


class FailureReason(str, Enum):
    """Named reasons an estimation or render step produced no usable value."""

    NOT_INVERTIBLE = "not_invertible"
    DEGENERATE = "degenerate"
    NO_CONSENSUS = "no_consensus"
    DIMENSION_MISMATCH = "dimension_mismatch"
    INSUFFICIENT_INPUT = "insufficient_input"


class DimensionMismatchError(ValueError):
    """Raised when matrix or vector shapes are incompatible for an operation."""


class EstimationError(RuntimeError):
    """Raised by :meth:`Result.unwrap` when the result carries a failure."""

    def __init__(self, reason: FailureReason, message: str = ""):
        self.reason = reason
        super().__init__(message or reason.value)


@dataclass(frozen=True)
class Result:
    """Outcome of a core operation.

    Parameters
    ----------
    ok : bool
        True when *value* holds a usable result.
    value : Any
        The produced object (a 3 x 3 homography, an inverse matrix or a
        raster), or *None* on failure.
    reason : FailureReason or None
        Why no value was produced.  Always set when ``ok`` is False.
    message : str
        Human-readable description of the failure.
    degenerate : bool
        Set when the solver had to zero a coefficient because of a vanishing
        pivot.  The value is present but should not be trusted blindly.
    inliers : tuple of int
        Indices of the correspondences consistent with the value.
    trials : int
        Number of RANSAC trials that produced a candidate model.
    """

    ok: bool
    value: Any = None
    reason: Optional[FailureReason] = None
    message: str = ""
    degenerate: bool = False
    inliers: Tuple[int, ...] = field(default_factory=tuple)
    trials: int = 0

    @classmethod
    def success(cls, value, **kwargs) -> "Result":
        return cls(ok=True, value=value, **kwargs)

    @classmethod
    def failure(cls, reason: FailureReason, message: str = "", **kwargs) -> "Result":
        return cls(ok=False, reason=reason, message=message, **kwargs)

    @property
    def inlier_count(self) -> int:
        return len(self.inliers)

    def unwrap(self):
        """Return the value, raising :class:`EstimationError` on failure."""
        if not self.ok:
            raise EstimationError(self.reason, self.message)
        return self.value
