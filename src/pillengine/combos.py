# src/pillengine/combos.py
import bisect
import logging
import math
import time
from typing import Callable, Iterable

import numpy as np

from .config import DEFAULT_CONFIG, SolverConfig
from .errors import SearchBudgetExceeded
from .helpers import is_close
from .types import DayCombo, PillCount

logger = logging.getLogger(__name__)

# Checking the clock on every node costs more than the node itself.
_CLOCK_CHECK_EVERY = 1024


class SearchBudget:
    """
    Iteration and wall-clock cap shared by every search run inside one strategy.

    tick() is called once per search node and raises SearchBudgetExceeded
    when either limit is passed.
    """

    def __init__(self, max_iterations: int, time_budget_s: float,
                 clock: Callable[[], float] = time.monotonic):
        self.max_iterations = max_iterations
        self.time_budget_s = time_budget_s
        self.iterations = 0
        self._clock = clock
        self._deadline = clock() + time_budget_s

    @classmethod
    def from_config(cls, config: SolverConfig) -> "SearchBudget":
        return cls(config.max_iterations, config.time_budget_s)

    def tick(self) -> None:
        self.iterations += 1
        if self.iterations > self.max_iterations:
            raise SearchBudgetExceeded(f"iteration cap of {self.max_iterations} reached")
        if self.iterations % _CLOCK_CHECK_EVERY == 0 and self._clock() > self._deadline:
            raise SearchBudgetExceeded(f"time budget of {self.time_budget_s:.2f} s exceeded")


def combo_rank_key(combo: DayCombo) -> tuple:
    """
    Sort key for combos reaching the same day dose:
      1) fewest tablets
      2) larger strengths first (compared tablet by tablet, largest first)
      3) whole tablets before a combo that needs a split one
    """
    strengths = sorted(
        (p.mg * (0.5 if p.half else 1.0) for p in combo.pills for _ in range(p.count)),
        reverse=True,
    )
    return (combo.tablet_count, tuple(-s for s in strengths), combo.has_half)


def _on_grid(x: float, step: int, tol: float) -> bool:
    return is_close(x, round(x / step) * step, tol)


def _reachable(target_mg: float, denoms: list[int], half_mg: float, tol: float) -> bool:
    """
    Whole tablets only add up to multiples of the gcd of their strengths; a half
    tablet shifts that grid by half_mg once. Targets off the grid are infeasible.
    """
    if denoms:
        step = math.gcd(*denoms)
        if _on_grid(target_mg, step, tol) or (half_mg and _on_grid(target_mg - half_mg, step, tol)):
            return True
    return bool(half_mg) and is_close(target_mg, half_mg, tol)


def find_day_combos(target_mg: float, available_pills: Iterable[int], allow_half: bool = False, *,
                    config: SolverConfig = DEFAULT_CONFIG,
                    budget: SearchBudget | None = None) -> list[DayCombo]:
    """
    Enumerate tablet combinations whose total is within config.tolerance of target_mg.

    Depth-first search over strengths sorted largest first, driven by an
    explicit stack so the number of strengths is not bounded by the
    interpreter's recursion limit. Each strength is tried with
    0..config.max_count_per_pill tablets; strengths larger than what is left
    to place are skipped. When allow_half is set, one half tablet of the
    smallest strength may close a residual of exactly half that strength
    (0.5 mg for a 1 mg tablet).

    Returns the best config.max_combos_per_day combos ordered by combo_rank_key,
    or [] when the day is infeasible (including a non-positive target or one
    no tablet sum can land on).
    Raises SearchBudgetExceeded if the budget runs out mid-search.
    """
    tol = config.tolerance
    strengths = sorted(set(available_pills), reverse=True)
    if not (target_mg >= tol) or not strengths:
        return []

    smallest = strengths[-1]
    half_mg = smallest / 2.0 if allow_half else 0.0
    # A strength above the day target can only ever be taken zero times.
    denoms = [d for d in strengths if d <= target_mg + tol]
    if not _reachable(target_mg, denoms, half_mg, tol):
        return []
    if budget is None:
        budget = SearchBudget.from_config(config)

    max_count = config.max_count_per_pill
    keep = config.max_combos_per_day
    n = len(denoms)
    # Ascending mirror of denoms for bisect.
    neg_denoms = [-d for d in denoms]

    # reach[i]: most mg whole tablets of denoms[i:] can add up to; reach[n] = 0
    reach = np.append(np.cumsum([max_count * d for d in reversed(denoms)])[::-1], 0.0).tolist()

    found: list[DayCombo] = []
    # Tablet count of the keep-th best combo so far. Rank is tablet count first,
    # so a branch already needing more tablets cannot reach the kept set.
    cutoff = float("inf")

    def accept(combo: DayCombo) -> None:
        nonlocal cutoff
        found.append(combo)
        if len(found) >= keep:
            cutoff = sorted(c.tablet_count for c in found)[keep - 1]

    # (next strength index, mg left, tablets chosen so far, tablet count)
    stack: list[tuple[int, float, tuple[PillCount, ...], int]] = [(0, float(target_mg), (), 0)]
    while stack:
        i, remainder, chosen, tablets = stack.pop()
        budget.tick()
        if is_close(remainder, 0.0, tol):
            accept(DayCombo(chosen))
            continue
        if remainder < -tol:
            continue
        i = bisect.bisect_left(neg_denoms, -(remainder + tol), lo=i)
        if i == n:
            if allow_half and is_close(remainder, half_mg, tol):
                accept(DayCombo(chosen + (PillCount(smallest, 1, half=True),)))
            continue
        if remainder > reach[i] + half_mg + tol:
            continue

        d = denoms[i]
        fewest_more = max(0, math.ceil((remainder - half_mg - tol) / d))
        if tablets + fewest_more > cutoff:
            continue
        # Pushed fewest first so the most tablets of this strength are popped
        # first, and low tablet counts are found early.
        for count in range(min(max_count, int((remainder + tol) // d)) + 1):
            stack.append((i + 1, remainder - count * d,
                          chosen + (PillCount(d, count),) if count else chosen, tablets + count))

    found.sort(key=combo_rank_key)
    if found:
        logger.debug("%d combo(s) for %.3f mg after %d node(s); best uses %d tablet(s)",
                     len(found), target_mg, budget.iterations, found[0].tablet_count)
    return found[:keep]
