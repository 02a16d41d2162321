from .types import SpecialDayPattern

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

# Special-day group for each pattern; the rest of the week is the other group.
PATTERN_DAYS: dict[str, frozenset[int]] = {
    "MonWedFri": frozenset({0, 2, 4}),
    "FriSun": frozenset({4, 6}),
}


def is_close(a: float, b: float, tol: float) -> bool:
    """Absolute-tolerance comparison; float doses are never compared with ==."""
    return abs(a - b) <= tol


def pattern_groups(pattern: SpecialDayPattern,
                   stop_days: frozenset[int] = frozenset()) -> tuple[tuple[int, ...], tuple[int, ...]]:
    """
    Split the active days of the week into (special days, other days).
    Stop days belong to neither group.
    """
    special = PATTERN_DAYS[pattern]
    group_a = tuple(d for d in range(7) if d in special and d not in stop_days)
    group_b = tuple(d for d in range(7) if d not in special and d not in stop_days)
    return group_a, group_b


def place_stop_days(n_stop: int) -> frozenset[int]:
    """
    Spread n_stop dose-free days evenly over the week.

    The last stop day is always Sunday, and for n_stop <= 3 no two stop days
    are adjacent (including across the Sun -> Mon wrap).
      1 -> {Sun}
      2 -> {Wed, Sun}
      3 -> {Tue, Thu, Sun}
    """
    if not (0 <= n_stop <= 6):
        raise ValueError(f"n_stop must be in 0..6 (got {n_stop}).")
    return frozenset(((i + 1) * 7) // n_stop - 1 for i in range(n_stop)) if n_stop else frozenset()


def format_mg(x: float) -> str:
    """3.0 -> '3', 2.5 -> '2.5'."""
    rounded = round(float(x), 2)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:g}"


def format_days(days) -> str:
    return "/".join(WEEKDAY_NAMES[d] for d in sorted(days))
