# src/pillengine/formatting.py
import math
from collections import defaultdict
from typing import Iterable

from .helpers import format_mg
from .types import CalculationInput, DaySchedule, DosageOption, FinalOutput, PillRenderData


def format_day(option: DosageOption, day_index: int) -> DaySchedule:
    """Materialize one weekday; stop days carry no pills and a zero dose."""
    if day_index in option.stop_days:
        return DaySchedule(day_index=day_index, total_dose=0.0, pills=(), is_stop_day=True)
    combo = option.day_combo(day_index)
    pills = tuple(PillRenderData(mg=p.mg, count=p.count, is_half=p.half)
                  for p in combo.pills if p.count > 0)
    total = sum(p.count * p.mg * (0.5 if p.is_half else 1.0) for p in pills)
    return DaySchedule(day_index=day_index, total_dose=float(total), pills=pills, is_stop_day=False)


def tablets_by_strength(days: Iterable[DaySchedule]) -> dict[int, float]:
    """
    Tablets consumed per strength over the given days.
    A half dose uses half a tablet, so values can end in .5.
    """
    totals: dict[int, float] = defaultdict(float)
    for day in days:
        for p in day.pills:
            totals[p.mg] += p.count * (0.5 if p.is_half else 1.0)
    return dict(totals)


def supply_until_appointment(week: tuple[DaySchedule, ...], days_until_appointment: int,
                             start_day_of_week: int) -> dict[int, int]:
    """
    Whole tablets to dispense per strength to cover the days before the
    next appointment, counting from start_day_of_week (0=Mon).
    Split tablets are rounded up to whole tablets per strength.
    """
    covered = (week[(start_day_of_week + i) % 7] for i in range(days_until_appointment))
    return {mg: math.ceil(n) for mg, n in tablets_by_strength(covered).items()}


def total_pills_message(week: tuple[DaySchedule, ...], calc_input: CalculationInput) -> str:
    weekly = tablets_by_strength(week)
    msg = "Weekly: " + _join_counts(weekly)
    if calc_input.days_until_appointment > 0:
        supply = supply_until_appointment(week, calc_input.days_until_appointment,
                                          calc_input.start_day_of_week)
        msg += (f"; until appointment in {calc_input.days_until_appointment} day(s): "
                + _join_counts(supply))
    return msg


def format_option(option: DosageOption, calc_input: CalculationInput) -> FinalOutput:
    week = tuple(format_day(option, i) for i in range(7))
    return FinalOutput(
        description=option.description,
        weekly_dose_actual=float(option.weekly_dose_actual),
        weekly_schedule=week,
        total_pills_message=total_pills_message(week, calc_input),
    )


def format_options(options: Iterable[DosageOption], calc_input: CalculationInput) -> list[FinalOutput]:
    return [format_option(o, calc_input) for o in options]


def _join_counts(counts: dict) -> str:
    if not counts:
        return "no tablets"
    return ", ".join(f"{mg} mg x {format_mg(n)}" for mg, n in sorted(counts.items(), reverse=True))
