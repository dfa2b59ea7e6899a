import math

import pytest

from config import FIELD_BOUNDS
from data_objects import PeriodInput
from validation import validate_periods


class TestValidatePeriods:

    def test_canonical_example_is_valid(self, canonical_periods):
        assert validate_periods(canonical_periods) == []

    def test_investment_above_cap(self):
        errors = validate_periods([PeriodInput(new_investment=20000.0)])

        assert len(errors) == 1
        err = errors[0]
        assert (err.period, err.field, err.value) == (0, "new_investment", 20000.0)
        assert (err.lower, err.upper) == FIELD_BOUNDS["new_investment"]
        assert err.message == "period 0: new_investment=20000 outside [0, 10000]"

    def test_return_below_minus_one(self):
        errors = validate_periods([PeriodInput(), PeriodInput(period_return=-1.5)])
        assert [(e.period, e.field) for e in errors] == [(1, "period_return")]

    def test_bounds_are_inclusive(self):
        periods = [
            PeriodInput(new_investment=10000.0, period_return=-1.0),
            PeriodInput(period_return=5.0),
        ]
        assert validate_periods(periods) == []

    def test_negative_dividends(self):
        errors = validate_periods([
            PeriodInput(new_investment=100.0, dividend_reinvested=-1.0, dividend_paid_out=-2.0),
        ])
        assert sorted(e.field for e in errors) == ["dividend_paid_out", "dividend_reinvested"]

    def test_withdrawal_is_unbounded(self):
        periods = [PeriodInput(new_investment=100.0, withdrawal=-1e9), PeriodInput(withdrawal=1e9)]
        assert validate_periods(periods) == []

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_values_are_rejected(self, bad):
        errors = validate_periods([PeriodInput(withdrawal=bad)])

        assert len(errors) == 1
        assert errors[0].field == "withdrawal"
        assert "finite" in errors[0].message

    def test_every_problem_is_reported(self):
        errors = validate_periods([
            PeriodInput(new_investment=-1.0, period_return=9.0),
            PeriodInput(new_investment=99999.0),
        ])
        assert len(errors) == 3

    def test_empty_sequence(self):
        errors = validate_periods([])
        assert len(errors) == 1
        assert errors[0].period is None
        assert errors[0].field == "periods"

    def test_custom_bounds_override_defaults(self):
        bounds = dict(FIELD_BOUNDS, new_investment=(0.0, 1_000_000.0))
        assert validate_periods([PeriodInput(new_investment=20000.0)], bounds) == []

    def test_does_not_raise(self):
        # reporting only, even for nonsense
        result = validate_periods([PeriodInput(new_investment=-5.0, period_return=math.nan)])
        assert isinstance(result, list)
