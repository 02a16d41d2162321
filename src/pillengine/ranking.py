# src/pillengine/ranking.py
from typing import Iterable

from .types import DosageOption

# Dose errors are compared after rounding so float noise never reorders options.
_ERROR_DECIMALS = 6


def dose_error(option: DosageOption, weekly_dose: float) -> float:
    """Absolute distance between delivered and target weekly dose (mg)."""
    return round(abs(option.weekly_dose_actual - weekly_dose), _ERROR_DECIMALS)

def distinct_denominations(option: DosageOption) -> int:
    """Number of different tablet strengths used anywhere in the week."""
    return len(frozenset().union(*(c.denominations for c in option.week())))

def weekly_tablet_count(option: DosageOption) -> int:
    """Tablets (whole or split) taken over the week."""
    return sum(c.tablet_count for c in option.week())

def half_penalty(option: DosageOption) -> int:
    """1 if any day needs a split tablet, else 0."""
    return int(any(c.has_half for c in option.week()))

def option_score(option: DosageOption, weekly_dose: float) -> tuple:
    """Composite ascending score; lower is better."""
    return (
        dose_error(option, weekly_dose),
        distinct_denominations(option),
        weekly_tablet_count(option),
        half_penalty(option),
        len(option.stop_days),
    )

def schedule_key(option: DosageOption) -> tuple:
    """Structural identity of the 7-day schedule, independent of how it was built."""
    return tuple(c.signature() for c in option.week())


def deduplicate(options: Iterable[DosageOption]) -> list[DosageOption]:
    """Drop options whose weekly schedule repeats an earlier one; first one wins."""
    seen: set[tuple] = set()
    unique: list[DosageOption] = []
    for opt in options:
        key = schedule_key(opt)
        if key in seen:
            continue
        seen.add(key)
        unique.append(opt)
    return unique


def rank_options(options: Iterable[DosageOption], weekly_dose: float, top_k: int = 3) -> list[DosageOption]:
    """
    Deduplicate, order by option_score and keep the best top_k.
    The sort is stable, so generation order settles any remaining tie.
    """
    unique = deduplicate(options)
    unique.sort(key=lambda o: option_score(o, weekly_dose))
    return unique[:top_k]
