# config.py

# ============================================================
# IRR SOLVER (Newton-Raphson)
# ============================================================
IRR_INITIAL_GUESS = 0.1

IRR_MAX_ITERATIONS = 100

# Convergence is measured on the step between successive guesses
IRR_TOLERANCE = 1e-6

# |rate| above this (±1000%) is treated as a runaway iteration
IRR_DIVERGENCE_LIMIT = 10.0

# ============================================================
# INPUT BOUNDS
# ============================================================
# (lower, upper) per PeriodInput field, inclusive. None = unbounded.
# Values are in the caller's units; no currency scaling happens here.
FIELD_BOUNDS = {
    "new_investment":      (0.0, 10000.0),
    "period_return":       (-1.0, 5.0),
    "dividend_reinvested": (0.0, None),
    "dividend_paid_out":   (0.0, None),
    "withdrawal":          (None, None),   # negative = extra contribution
}

# ============================================================
# CANONICAL EXAMPLE (three periods)
# ============================================================
DEFAULT_PERIODS = [
    {
        "new_investment": 100.0,
        "period_return": -0.5,
        "dividend_reinvested": 0.0,
        "dividend_paid_out": 5.0,
        "withdrawal": 0.0,
    },
    {
        "new_investment": 950.0,
        "period_return": 0.35,
        "dividend_reinvested": 10.0,
        "dividend_paid_out": 0.0,
        "withdrawal": -350.0,
    },
    {
        "new_investment": 0.0,
        "period_return": 0.27,
        "dividend_reinvested": 0.0,
        "dividend_paid_out": 0.0,
        "withdrawal": 0.0,
    },
]
