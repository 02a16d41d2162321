# src/pillengine/regimens.py
from __future__ import annotations

import logging
from typing import Callable, Iterator

import numpy as np

from .combos import SearchBudget, find_day_combos
from .config import DEFAULT_CONFIG, SolverConfig
from .errors import SearchBudgetExceeded
from .helpers import format_days, format_mg, is_close, pattern_groups, place_stop_days
from .types import EMPTY_DAY, CalculationInput, DayCombo, DosageOption, NonUniform, Uniform

logger = logging.getLogger(__name__)

Strategy = Callable[[CalculationInput, SolverConfig, SearchBudget, frozenset], Iterator[DosageOption]]


def generate_options(calc_input: CalculationInput, *,
                     config: SolverConfig = DEFAULT_CONFIG) -> list[DosageOption]:
    """
    Build every feasible weekly regimen for a validated request.

    Strategies, in order, with results accumulated:
      1) uniform      : same dose every day
      2) pattern split: one dose on the special days, another on the rest
      3) stop days    : only if 1-2 found nothing; 1, then 2, ... dose-free
                        days with the weekly dose spread over the remaining
                        days (uniform and pattern split again)

    Returns [] when nothing lands within tolerance of the weekly dose.
    """
    options: list[DosageOption] = []
    options += _run_strategy("uniform", uniform_options, calc_input, config)
    options += _run_strategy("pattern split", pattern_options, calc_input, config)
    if options:
        return options

    for n_stop in range(1, config.max_stop_days + 1):
        stop_days = place_stop_days(n_stop)
        found = _run_strategy(f"uniform, {n_stop} stop day(s)", uniform_options,
                              calc_input, config, stop_days)
        found += _run_strategy(f"pattern split, {n_stop} stop day(s)", pattern_options,
                               calc_input, config, stop_days)
        if found:
            return found

    logger.info("No regimen within %.2f mg of %.2f mg/week from %s mg tablets",
                config.tolerance, calc_input.weekly_dose, sorted(calc_input.available_pills))
    return []


def _run_strategy(name: str, strategy: Strategy, calc_input: CalculationInput,
                  config: SolverConfig, stop_days: frozenset[int] = frozenset()) -> list[DosageOption]:
    # Each strategy gets a fresh budget; running out ends this strategy only,
    # keeping the options it had already produced.
    budget = SearchBudget.from_config(config)
    found: list[DosageOption] = []
    try:
        for option in strategy(calc_input, config, budget, stop_days):
            found.append(option)
    except SearchBudgetExceeded as e:
        logger.warning("Strategy '%s' abandoned after %d node(s) with %d option(s) kept: %s",
                       name, budget.iterations, len(found), e)
        return found
    logger.debug("Strategy '%s' produced %d option(s)", name, len(found))
    return found


def uniform_options(calc_input: CalculationInput, config: SolverConfig, budget: SearchBudget,
                    stop_days: frozenset[int] = frozenset()) -> Iterator[DosageOption]:
    """The weekly dose split evenly over the active days, one option per day combo."""
    active = 7 - len(stop_days)
    daily = calc_input.weekly_dose / active
    combos = find_day_combos(daily, calc_input.available_pills, calc_input.allow_half,
                             config=config, budget=budget)

    for combo in combos:
        actual = combo.total_mg * active
        if not is_close(actual, calc_input.weekly_dose, config.tolerance):
            continue
        desc = f"{format_mg(combo.total_mg)} mg daily ({describe_combo(combo)})"
        yield DosageOption(option_type=Uniform(combo), stop_days=stop_days,
                           weekly_dose_actual=actual,
                           description=desc + _stop_suffix(stop_days))


def pattern_options(calc_input: CalculationInput, config: SolverConfig, budget: SearchBudget,
                    stop_days: frozenset[int] = frozenset()) -> Iterator[DosageOption]:
    """
    Two daily doses: t_a on the pattern's special days, t_b on the other active days,
    with n_a * t_a + n_b * t_b equal to the weekly dose.
    """
    group_a, group_b = pattern_groups(calc_input.special_day_pattern, stop_days)
    if not group_a or not group_b:
        return

    weekly = calc_input.weekly_dose
    tol = config.tolerance
    n_a, n_b = len(group_a), len(group_b)
    step = 0.5 if calc_input.allow_half else 1.0
    mean = weekly / (n_a + n_b)

    for t_a in pattern_candidates(mean, step, weekly / n_a, config.max_pattern_candidates):
        t_b = (weekly - n_a * t_a) / n_b
        if t_b < tol or is_close(t_a, t_b, tol):
            continue
        # t_b comes off the grid more often than t_a, so it is tried first.
        combos_b = find_day_combos(t_b, calc_input.available_pills, calc_input.allow_half,
                                   config=config, budget=budget)
        if not combos_b:
            continue
        combos_a = find_day_combos(t_a, calc_input.available_pills, calc_input.allow_half,
                                   config=config, budget=budget)
        if not combos_a:
            continue

        combo_a, combo_b = combos_a[0], combos_b[0]
        actual = n_a * combo_a.total_mg + n_b * combo_b.total_mg
        if not is_close(actual, weekly, tol):
            continue
        days = tuple(combo_a if d in group_a else combo_b if d in group_b else EMPTY_DAY
                     for d in range(7))
        desc = (f"{format_mg(combo_a.total_mg)} mg {format_days(group_a)} ({describe_combo(combo_a)}), "
                f"{format_mg(combo_b.total_mg)} mg other days ({describe_combo(combo_b)})")
        yield DosageOption(option_type=NonUniform(days), stop_days=stop_days,
                           weekly_dose_actual=actual,
                           description=desc + _stop_suffix(stop_days))


def pattern_candidates(mean: float, step: float, upper: float, limit: int) -> list[float]:
    """
    Trial doses for the special-day group, on a grid of `step` mg, nearest the
    daily mean first: m, m+s, m-s, m+2s, m-2s, ...
    Only values in [step, upper) are kept; at most `limit` grid points are visited.
    """
    base = np.round(mean / step) * step
    k = np.arange(limit)
    offsets = np.where(k % 2 == 1, (k + 1) // 2, -(k // 2))
    grid = base + offsets * step
    keep = (grid >= step) & (grid < upper)
    return [float(t) for t in grid[keep]]


def describe_combo(combo: DayCombo) -> str:
    """e.g. '1 x 5 mg + 1 x half 1 mg'"""
    parts = []
    for p in combo.pills:
        if p.count == 0:
            continue
        parts.append(f"{p.count} x half {p.mg} mg" if p.half else f"{p.count} x {p.mg} mg")
    return " + ".join(parts) if parts else "no tablets"


def _stop_suffix(stop_days: frozenset[int]) -> str:
    return f", no dose {format_days(stop_days)}" if stop_days else ""
