"""
Numeric failures raised by the return-metric functions.

Every class carries a ``kind`` so the engine can turn a caught failure into
a tagged ``MetricResult`` instead of a sentinel number.
"""

from data_objects import FailureKind


class EngineError(ValueError):
    """Base class for a metric that could not be determined."""

    kind = None

    def __init__(self, message: str = ""):
        super().__init__(message or (self.kind.value if self.kind else ""))


class DegenerateCashFlowsError(EngineError):
    """Cash-flow series is shorter than two entries or entirely zero."""

    kind = FailureKind.DEGENERATE_CASH_FLOWS


class ZeroDerivativeError(EngineError):
    """NPV slope is flat (or 1 + rate is zero), so no Newton step exists."""

    kind = FailureKind.ZERO_DERIVATIVE


class DivergedError(EngineError):
    kind = FailureKind.DIVERGED


class NonConvergenceError(EngineError):
    kind = FailureKind.NON_CONVERGENCE


class InvalidSeriesError(EngineError):
    """Input series are empty or misaligned."""

    kind = FailureKind.INVALID_SERIES


class NonPositiveProductError(EngineError):
    """Chained growth factors multiply to <= 0; the N-th root is undefined."""

    kind = FailureKind.NON_POSITIVE_PRODUCT
