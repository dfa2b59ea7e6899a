import logging
import math
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from config import (
    IRR_DIVERGENCE_LIMIT,
    IRR_INITIAL_GUESS,
    IRR_MAX_ITERATIONS,
    IRR_TOLERANCE,
)
from data_objects import PeriodInput, PeriodState, TWRResult
from engine_errors import (
    DegenerateCashFlowsError,
    DivergedError,
    InvalidSeriesError,
    NonConvergenceError,
    NonPositiveProductError,
    ZeroDerivativeError,
)

logger = logging.getLogger(__name__)

BREAKDOWN_COLUMNS = [
    "period",
    "start_value",
    "new_investment",
    "period_return",
    "gain",
    "dividend_paid_out",
    "dividend_reinvested",
    "dividend_yield",
    "total_return",
    "withdrawal",
    "end_value",
    "net_cash_flow",
    "excluded",
]


# ------------------------------------------------------------
# Balance projection
# ------------------------------------------------------------

def project_balances(periods: Sequence[PeriodInput]) -> List[PeriodState]:
    """
    Roll the account forward one period at a time:

      start[0] = investment[0]
      start[i] = end[i-1] + investment[i]
      gain[i]  = start[i] * return[i]
      end[i]   = start[i] + gain[i] + dividend_reinvested[i] + withdrawal[i]

    Paid-out dividends leave the account and never touch the balance.
    Non-finite inputs propagate; range checks belong to validate_periods().
    """
    if not periods:
        raise InvalidSeriesError("at least one period is required to project balances")

    states: List[PeriodState] = []
    prev_end = 0.0

    for p in periods:
        start = prev_end + p.new_investment
        gain = start * p.period_return
        end = start + gain + p.dividend_reinvested + p.withdrawal
        states.append(PeriodState(start_value=start, gain=gain, end_value=end))
        prev_end = end

    return states


# ------------------------------------------------------------
# External cash flows (investor's point of view)
# ------------------------------------------------------------

def _check_cash_flows(cash_flows) -> np.ndarray:
    flows = np.asarray(cash_flows, dtype=float)
    if flows.ndim != 1 or len(flows) < 2:
        raise DegenerateCashFlowsError(
            f"need at least 2 cash flows to solve for a rate, got {flows.size}"
        )
    if not np.any(flows != 0.0):
        raise DegenerateCashFlowsError("every cash flow is zero")
    return flows


def build_cash_flows(
    periods: Sequence[PeriodInput],
    terminal_value: float,
) -> Tuple[float, ...]:
    """
    One flow per period plus a terminal liquidation:

      flow[i] = -investment[i] + dividend_paid_out[i] + withdrawal[i]   (i < N)
      flow[N] = end_value[N-1]

    Contributions are outflows (negative), anything returned to the
    investor is an inflow. The terminal value is never reduced by a
    further withdrawal.
    """
    flows = [
        -p.new_investment + p.dividend_paid_out + p.withdrawal
        for p in periods
    ]
    flows.append(float(terminal_value))

    _check_cash_flows(flows)
    return tuple(flows)


# ------------------------------------------------------------
# IRR (money-weighted return), Newton-Raphson
# ------------------------------------------------------------

def _discount_base(rate: float) -> float:
    base = 1.0 + rate
    if base == 0.0:
        raise ZeroDerivativeError("rate of -100% makes every discount factor infinite")
    return base


def npv(rate: float, cash_flows) -> float:
    """NPV(r) = Σ flow[t] / (1 + r)^t, with (1 + r)^0 = 1."""
    flows = np.asarray(cash_flows, dtype=float)
    base = _discount_base(rate)
    t = np.arange(len(flows))
    return float(np.sum(flows / base ** t))


def npv_derivative(rate: float, cash_flows) -> float:
    """dNPV/dr = Σ -t * flow[t] / (1 + r)^(t + 1)."""
    flows = np.asarray(cash_flows, dtype=float)
    base = _discount_base(rate)
    t = np.arange(len(flows))
    return float(np.sum(-t * flows / base ** (t + 1)))


def compute_irr(
    cash_flows,
    guess: float = IRR_INITIAL_GUESS,
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE,
    divergence_limit: float = IRR_DIVERGENCE_LIMIT,
) -> float:
    """
    Rate r such that NPV(r) = 0.

    Each iteration steps r -> r - NPV(r) / NPV'(r) and stops when the step
    is smaller than `tolerance`. Terminal failures:
      - DegenerateCashFlowsError : fewer than 2 flows, or all zero
      - ZeroDerivativeError      : |NPV'(r)| < tolerance, or 1 + r == 0
      - DivergedError            : |r| > divergence_limit after a step
      - NonConvergenceError      : `max_iterations` used up

    No retry with another seed happens here; that is the caller's call.
    """
    flows = _check_cash_flows(cash_flows)
    rate = float(guess)

    for iteration in range(max_iterations):
        value = npv(rate, flows)
        slope = npv_derivative(rate, flows)

        if not (math.isfinite(value) and math.isfinite(slope)):
            raise DivergedError(f"NPV is not finite at rate {rate!r}")
        if abs(slope) < tolerance:
            raise ZeroDerivativeError(
                f"NPV derivative {slope:.3g} below tolerance at rate {rate:.6f}"
            )

        next_rate = rate - value / slope
        logger.debug(
            "irr iteration %d: rate=%.10f npv=%.6g dnpv=%.6g next=%.10f",
            iteration, rate, value, slope, next_rate,
        )

        if abs(next_rate - rate) < tolerance:
            return float(next_rate)

        rate = next_rate
        if not math.isfinite(rate) or abs(rate) > divergence_limit:
            raise DivergedError(
                f"rate {rate:.4g} left [-{divergence_limit:g}, {divergence_limit:g}] "
                f"after {iteration + 1} iterations"
            )

    raise NonConvergenceError(
        f"no convergence within {max_iterations} iterations (last rate {rate:.6f})"
    )


# ------------------------------------------------------------
# TWR (time-weighted return)
# ------------------------------------------------------------

def compute_twr(start_values, gains, total_dividends) -> TWRResult:
    """
    Chain per-period total-return ratios and take the N-th root:

      sub[i] = (start[i] + gain[i] + dividends[i]) / start[i]
      TWR    = (Π sub[i]) ** (1 / N) - 1

    A period with start[i] <= 0 has no capital base; it is chained as a
    neutral 1.0 and listed in `excluded_periods`.
    """
    n = len(start_values)
    if n == 0:
        raise InvalidSeriesError("TWR needs at least one period")
    if len(gains) != n or len(total_dividends) != n:
        raise InvalidSeriesError(
            f"misaligned series: {n} start values, {len(gains)} gains, "
            f"{len(total_dividends)} dividend entries"
        )

    factors: List[float] = []
    excluded: List[int] = []

    for i, (start, gain, div) in enumerate(zip(start_values, gains, total_dividends)):
        if start <= 0:
            excluded.append(i)
            factors.append(1.0)
            continue
        factors.append((start + gain + div) / start)

    if excluded:
        logger.warning(
            "TWR: periods %s have a non-positive start value and were excluded from compounding",
            excluded,
        )

    product = float(np.prod(factors))
    if not product > 0:
        raise NonPositiveProductError(
            f"chained sub-returns multiply to {product:.6g}; root is undefined"
        )

    return TWRResult(
        value=float(product ** (1.0 / n) - 1.0),
        sub_returns=tuple(factors),
        excluded_periods=tuple(excluded),
    )


# ------------------------------------------------------------
# Average period returns (price only)
# ------------------------------------------------------------

def arithmetic_mean(returns) -> float:
    r = np.asarray(returns, dtype=float)
    if r.size == 0:
        raise InvalidSeriesError("mean of an empty return series")
    return float(np.sum(r) / r.size)


def geometric_mean(returns) -> float:
    """(Π (1 + r)) ** (1 / N) - 1; undefined once any period loses 100% or more."""
    r = np.asarray(returns, dtype=float)
    if r.size == 0:
        raise InvalidSeriesError("mean of an empty return series")

    product = float(np.prod(1.0 + r))
    if not product > 0:
        raise NonPositiveProductError(
            f"growth factors multiply to {product:.6g}; geometric mean is undefined"
        )
    return float(product ** (1.0 / r.size) - 1.0)


# ------------------------------------------------------------
# Per-period breakdown table
# ------------------------------------------------------------

def period_breakdown(periods: Sequence[PeriodInput]) -> pd.DataFrame:
    """
    One row per period with the projected balances and per-period ratios.

    dividend_yield and total_return are measured against start_value.
    Where start_value <= 0 both are 0.0 and `excluded` is True, the same
    neutral treatment compute_twr() gives that period.
    """
    if not periods:
        return pd.DataFrame(columns=BREAKDOWN_COLUMNS)

    states = project_balances(periods)
    rows = []

    for i, (p, s) in enumerate(zip(periods, states)):
        excluded = s.start_value <= 0
        if excluded:
            dividend_yield = 0.0
            total_return = 0.0
        else:
            dividend_yield = p.total_dividends / s.start_value
            total_return = (s.gain + p.total_dividends) / s.start_value

        rows.append({
            "period": i,
            "start_value": s.start_value,
            "new_investment": p.new_investment,
            "period_return": p.period_return,
            "gain": s.gain,
            "dividend_paid_out": p.dividend_paid_out,
            "dividend_reinvested": p.dividend_reinvested,
            "dividend_yield": dividend_yield,
            "total_return": total_return,
            "withdrawal": p.withdrawal,
            "end_value": s.end_value,
            "net_cash_flow": -p.new_investment + p.dividend_paid_out + p.withdrawal,
            "excluded": excluded,
        })

    return pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)
