# src/pillengine/validation.py
import math
from typing import get_args

from .errors import InvalidInput
from .types import CalculationInput, SpecialDayPattern

KNOWN_PATTERNS = frozenset(get_args(SpecialDayPattern))


def validate_input(calc_input: CalculationInput) -> CalculationInput:
    """
    Reject malformed requests before any search runs.

    Returns the input unchanged so callers can chain it; raises InvalidInput
    naming the first offending field otherwise.
    """
    _validate_positive_finite("weekly_dose", calc_input.weekly_dose)
    _validate_pills("available_pills", calc_input.available_pills)
    if calc_input.special_day_pattern not in KNOWN_PATTERNS:
        raise InvalidInput("special_day_pattern",
                           f"must be one of {sorted(KNOWN_PATTERNS)} (got {calc_input.special_day_pattern!r}).")
    _validate_int_in_range("days_until_appointment", calc_input.days_until_appointment, 0, None)
    _validate_int_in_range("start_day_of_week", calc_input.start_day_of_week, 0, 6)
    if not isinstance(calc_input.allow_half, bool):
        raise InvalidInput("allow_half", f"must be a bool (got {calc_input.allow_half!r}).")
    return calc_input


# --------------------------
# Small input validators
# --------------------------
def _is_int(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool)

def _validate_positive_finite(name: str, x) -> None:
    if isinstance(x, bool) or not isinstance(x, (int, float)):
        raise InvalidInput(name, f"must be a number (got {x!r}).")
    if not math.isfinite(x):
        raise InvalidInput(name, f"must be finite (got {x}).")
    if not (x > 0):
        raise InvalidInput(name, f"must be > 0 (got {x}).")

def _validate_pills(name: str, pills) -> None:
    if not pills:
        raise InvalidInput(name, "must contain at least one tablet strength.")
    for mg in pills:
        if not (_is_int(mg) and mg > 0):
            raise InvalidInput(name, f"must contain positive integers only (got {mg!r}).")

def _validate_int_in_range(name: str, x, lo: int, hi: int | None) -> None:
    if not _is_int(x):
        raise InvalidInput(name, f"must be an integer (got {x!r}).")
    if x < lo or (hi is not None and x > hi):
        bound = f">= {lo}" if hi is None else f"in {lo}..{hi}"
        raise InvalidInput(name, f"must be {bound} (got {x}).")
