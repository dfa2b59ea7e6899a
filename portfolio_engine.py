import logging
from typing import Optional, Sequence, Tuple

import pandas as pd

from data_objects import FailureKind, MetricResult, PeriodInput, ReturnMetrics
from engine_errors import EngineError
from financial_math import (
    arithmetic_mean,
    build_cash_flows,
    compute_irr,
    compute_twr,
    geometric_mean,
    project_balances,
)
from validation import validate_periods

logger = logging.getLogger(__name__)

METRIC_LABELS = {
    "irr": "IRR (money-weighted)",
    "twr": "TWR (time-weighted)",
    "geometric_mean": "Geometric mean (price only)",
    "arithmetic_mean": "Arithmetic mean (price only)",
}


def coerce_periods(periods) -> Tuple[PeriodInput, ...]:
    """
    Accept PeriodInput objects, plain mappings, or a DataFrame with one row
    per period (columns named like the PeriodInput fields).
    """
    if isinstance(periods, pd.DataFrame):
        periods = periods.to_dict("records")

    out = []
    for p in periods:
        if isinstance(p, PeriodInput):
            out.append(p)
        elif hasattr(p, "get"):
            out.append(PeriodInput.from_mapping(p))
        else:
            raise TypeError(f"unsupported period type: {type(p).__name__}")
    return tuple(out)


def _capture(name: str, fn, *args) -> MetricResult:
    # A numeric failure stays local to the metric that raised it
    try:
        return MetricResult.success(fn(*args))
    except EngineError as exc:
        logger.warning("%s could not be determined (%s): %s", name, exc.kind.value, exc)
        return MetricResult.failed(exc.kind, str(exc))


def compute_portfolio_metrics(
    periods: Sequence[PeriodInput],
    bounds: Optional[dict] = None,
) -> ReturnMetrics:
    """
    Run the full calculation for one set of period inputs.

      1. Validate every field (fail-closed: nothing is computed if any
         value is out of range).
      2. Project start / gain / end balances.
      3. IRR from the external cash flows, TWR from the chained
         sub-returns, and both means from the raw price returns.

    Each metric reports its own failure; one failing never blocks another.
    Pure: identical inputs give identical results.
    """
    periods = coerce_periods(periods)

    errors = validate_periods(periods, bounds)
    if errors:
        logger.info("rejected %d period(s): %d input range error(s)", len(periods), len(errors))
        message = "; ".join(e.message for e in errors)
        rejected = MetricResult.failed(FailureKind.INPUT_RANGE, message)
        return ReturnMetrics(
            irr=rejected,
            twr=rejected,
            arithmetic_mean=rejected,
            geometric_mean=rejected,
            validation_errors=tuple(errors),
        )

    states = project_balances(periods)

    # ----- IRR -----
    cash_flows: Tuple[float, ...] = ()
    try:
        cash_flows = build_cash_flows(periods, states[-1].end_value)
    except EngineError as exc:
        logger.warning("irr could not be determined (%s): %s", exc.kind.value, exc)
        irr = MetricResult.failed(exc.kind, str(exc))
    else:
        irr = _capture("irr", compute_irr, cash_flows)

    # ----- TWR -----
    excluded: Tuple[int, ...] = ()
    try:
        twr_result = compute_twr(
            [s.start_value for s in states],
            [s.gain for s in states],
            [p.total_dividends for p in periods],
        )
    except EngineError as exc:
        logger.warning("twr could not be determined (%s): %s", exc.kind.value, exc)
        twr = MetricResult.failed(exc.kind, str(exc))
    else:
        twr = MetricResult.success(twr_result.value)
        excluded = twr_result.excluded_periods

    # ----- Means of the price-only returns -----
    returns = [p.period_return for p in periods]
    arith = _capture("arithmetic_mean", arithmetic_mean, returns)
    geo = _capture("geometric_mean", geometric_mean, returns)

    metrics = ReturnMetrics(
        irr=irr,
        twr=twr,
        arithmetic_mean=arith,
        geometric_mean=geo,
        period_states=tuple(states),
        cash_flows=cash_flows,
        excluded_periods=excluded,
    )
    logger.info(
        "computed metrics for %d period(s): irr=%s twr=%s",
        len(periods),
        irr.value if irr.ok else irr.failure.value,
        twr.value if twr.ok else twr.failure.value,
    )
    return metrics


def metrics_frame(metrics: ReturnMetrics) -> pd.DataFrame:
    """
    Tidy Metric / Return / Status table for a presentation layer.
    Failed metrics keep Return as NaN and carry the failure tag in Status.
    """
    rows = []
    for key, label in METRIC_LABELS.items():
        result = getattr(metrics, key)
        rows.append({
            "Metric": label,
            "Return": result.value if result.ok else float("nan"),
            "Status": "ok" if result.ok else result.failure.value,
        })
    return pd.DataFrame(rows, columns=["Metric", "Return", "Status"])
