"""
Solver tunables.

Defaults are conservative clinical values; each one can be overridden with a
PILLENGINE_* environment variable. The variables are read once at import, and
DEFAULT_CONFIG (what solve() uses when no config is passed) is built from them.
"""
import os
from dataclasses import dataclass

# Two doses closer than this (mg) are considered equal.
TOLERANCE_MG = float(os.getenv("PILLENGINE_TOLERANCE_MG", "0.01"))

# Tablets of a single strength allowed on one day.
MAX_COUNT_PER_PILL = int(os.getenv("PILLENGINE_MAX_COUNT_PER_PILL", "4"))

MAX_COMBOS_PER_DAY = int(os.getenv("PILLENGINE_MAX_COMBOS_PER_DAY", "5"))
MAX_PATTERN_CANDIDATES = int(os.getenv("PILLENGINE_MAX_PATTERN_CANDIDATES", "64"))
MAX_STOP_DAYS = int(os.getenv("PILLENGINE_MAX_STOP_DAYS", "2"))
TOP_K = int(os.getenv("PILLENGINE_TOP_K", "3"))

# Per-strategy search caps
MAX_ITERATIONS = int(os.getenv("PILLENGINE_MAX_ITERATIONS", "200000"))
TIME_BUDGET_S = float(os.getenv("PILLENGINE_TIME_BUDGET_S", "2.0"))


def _validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x > 0):
        raise ValueError(f"{name} must be a positive integer (got {x}).")


@dataclass(frozen=True)
class SolverConfig:
    tolerance: float = 0.01
    max_count_per_pill: int = 4
    max_combos_per_day: int = 5
    max_pattern_candidates: int = 64
    max_stop_days: int = 2
    top_k: int = 3
    max_iterations: int = 200_000
    time_budget_s: float = 2.0

    def __post_init__(self):
        _validate_positive("tolerance", self.tolerance)
        _validate_positive("time_budget_s", self.time_budget_s)
        for name in ("max_count_per_pill", "max_combos_per_day",
                     "max_pattern_candidates", "top_k", "max_iterations"):
            _validate_positive_int(name, getattr(self, name))
        if not (isinstance(self.max_stop_days, int) and 0 <= self.max_stop_days <= 3):
            raise ValueError(f"max_stop_days must be an integer in 0..3 (got {self.max_stop_days}).")

    @classmethod
    def from_env(cls) -> "SolverConfig":
        """Build a config from the PILLENGINE_* environment defaults above."""
        return cls(
            tolerance=TOLERANCE_MG,
            max_count_per_pill=MAX_COUNT_PER_PILL,
            max_combos_per_day=MAX_COMBOS_PER_DAY,
            max_pattern_candidates=MAX_PATTERN_CANDIDATES,
            max_stop_days=MAX_STOP_DAYS,
            top_k=TOP_K,
            max_iterations=MAX_ITERATIONS,
            time_budget_s=TIME_BUDGET_S,
        )


DEFAULT_CONFIG = SolverConfig.from_env()
