import math
from typing import List, Optional, Sequence

from config import FIELD_BOUNDS
from data_objects import PERIOD_FIELDS, InputRangeError, PeriodInput


def validate_periods(
    periods: Sequence[PeriodInput],
    bounds: Optional[dict] = None,
) -> List[InputRangeError]:
    """
    Check every field of every period against `bounds` (inclusive).

    Returns the full list of problems; an empty list means the periods are
    safe to hand to the engine. Nothing is raised for a bad value.
    """
    if bounds is None:
        bounds = FIELD_BOUNDS

    if not periods:
        return [InputRangeError(period=None, field="periods", value=0.0, lower=1.0)]

    errors: List[InputRangeError] = []

    for i, p in enumerate(periods):
        for name in PERIOD_FIELDS:
            value = getattr(p, name)
            lower, upper = bounds.get(name, (None, None))

            if not math.isfinite(value):
                errors.append(InputRangeError(i, name, value, lower, upper))
                continue
            if lower is not None and value < lower:
                errors.append(InputRangeError(i, name, value, lower, upper))
            elif upper is not None and value > upper:
                errors.append(InputRangeError(i, name, value, lower, upper))

    return errors
