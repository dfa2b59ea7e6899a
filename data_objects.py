"""
Value objects passed into and out of the return engine.

Everything here is immutable and rebuilt from scratch on each calculation:
  - PeriodInput   : what the caller supplies for one period
  - PeriodState   : projected start / gain / end balance for one period
  - MetricResult  : a rate, or a tagged failure (never both)
  - ReturnMetrics : the full result handed back by compute_portfolio_metrics
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple


class FailureKind(str, Enum):
    INPUT_RANGE = "input_range"
    DEGENERATE_CASH_FLOWS = "degenerate_cash_flows"
    ZERO_DERIVATIVE = "zero_derivative"
    DIVERGED = "diverged"
    NON_CONVERGENCE = "non_convergence"
    INVALID_SERIES = "invalid_series"
    NON_POSITIVE_PRODUCT = "non_positive_product"


PERIOD_FIELDS = (
    "new_investment",
    "period_return",
    "dividend_reinvested",
    "dividend_paid_out",
    "withdrawal",
)


# ------------------------------------------------------------
# Inputs
# ------------------------------------------------------------

@dataclass(frozen=True)
class PeriodInput:
    """
    One period of account activity.

      - new_investment      : contribution at period start (>= 0)
      - period_return       : price-only return as a decimal (-0.5 = -50%)
      - dividend_reinvested : dividends added back to the balance
      - dividend_paid_out   : dividends taken as cash
      - withdrawal          : signed; negative means an extra contribution
    """

    new_investment: float = 0.0
    period_return: float = 0.0
    dividend_reinvested: float = 0.0
    dividend_paid_out: float = 0.0
    withdrawal: float = 0.0

    @property
    def total_dividends(self) -> float:
        return self.dividend_reinvested + self.dividend_paid_out

    @classmethod
    def from_mapping(cls, row: Mapping) -> "PeriodInput":
        # Missing fields default to 0.0; unknown keys are ignored
        values = {}
        for name in PERIOD_FIELDS:
            raw = row.get(name, 0.0)
            values[name] = 0.0 if raw is None else float(raw)
        return cls(**values)


@dataclass(frozen=True)
class InputRangeError:
    """A field value outside its configured domain (reported, never raised)."""

    period: Optional[int]
    field: str
    value: float
    lower: Optional[float] = None
    upper: Optional[float] = None

    @property
    def message(self) -> str:
        prefix = "" if self.period is None else f"period {self.period}: "
        if not math.isfinite(self.value):
            return f"{prefix}{self.field} must be a finite number, got {self.value}"
        lo = "-inf" if self.lower is None else f"{self.lower:g}"
        hi = "inf" if self.upper is None else f"{self.upper:g}"
        return f"{prefix}{self.field}={self.value:g} outside [{lo}, {hi}]"


# ------------------------------------------------------------
# Derived state
# ------------------------------------------------------------

@dataclass(frozen=True)
class PeriodState:
    start_value: float
    gain: float
    end_value: float


@dataclass(frozen=True)
class TWRResult:
    value: float
    sub_returns: Tuple[float, ...]
    # Periods whose start value was <= 0 and were chained as a neutral 1.0
    excluded_periods: Tuple[int, ...] = ()


# ------------------------------------------------------------
# Results
# ------------------------------------------------------------

@dataclass(frozen=True)
class MetricResult:
    """
    Either a numeric rate or a failure tag.

    A rate of 0.0 is a real answer; a failed metric has value=None.
    """

    value: Optional[float] = None
    failure: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: float) -> "MetricResult":
        return cls(value=float(value))

    @classmethod
    def failed(cls, kind: FailureKind, message: str = "") -> "MetricResult":
        return cls(value=None, failure=kind, message=message or kind.value)


@dataclass(frozen=True)
class ReturnMetrics:
    irr: MetricResult
    twr: MetricResult
    arithmetic_mean: MetricResult
    geometric_mean: MetricResult
    period_states: Tuple[PeriodState, ...] = ()
    cash_flows: Tuple[float, ...] = ()
    excluded_periods: Tuple[int, ...] = ()
    validation_errors: Tuple[InputRangeError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors
