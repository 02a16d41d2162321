# src/pillengine/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union

# Day indices are 0=Mon ... 6=Sun everywhere. Doses are always in mg.
SpecialDayPattern = Literal["MonWedFri", "FriSun"]


@dataclass(frozen=True)
class CalculationInput:
    """
    One solve request.

    weekly_dose            : total target dose over 7 days, mg
    allow_half             : whether tablets may be split in half
    available_pills        : tablet strengths on hand, mg (positive integers)
    special_day_pattern    : which days form the "special" group for split regimens
    days_until_appointment : days of supply to count for the dispensing message
    start_day_of_week      : weekday the regimen starts on (0=Mon)
    """
    weekly_dose: float
    allow_half: bool = False
    available_pills: frozenset[int] = frozenset()
    special_day_pattern: SpecialDayPattern = "MonWedFri"
    days_until_appointment: int = 0
    start_day_of_week: int = 0


@dataclass(frozen=True)
class PillCount:
    """N tablets of one strength; half=True means each tablet is split."""
    mg: int
    count: int
    half: bool = False

    @property
    def dose_mg(self) -> float:
        return self.count * self.mg * (0.5 if self.half else 1.0)


@dataclass(frozen=True)
class DayCombo:
    """
    The tablets taken on one day.

    pills : PillCount entries, largest strength first, half entries last.
    """
    pills: tuple[PillCount, ...] = ()

    @property
    def total_mg(self) -> float:
        return float(sum(p.dose_mg for p in self.pills))

    @property
    def tablet_count(self) -> int:
        # A half tablet is still one piece to swallow.
        return sum(p.count for p in self.pills)

    @property
    def has_half(self) -> bool:
        return any(p.half and p.count > 0 for p in self.pills)

    @property
    def denominations(self) -> frozenset[int]:
        return frozenset(p.mg for p in self.pills if p.count > 0)

    def signature(self) -> tuple[tuple[int, int, bool], ...]:
        """Hashable structural key, ignoring zero-count entries."""
        return tuple((p.mg, p.count, p.half) for p in self.pills if p.count > 0)


EMPTY_DAY = DayCombo()


@dataclass(frozen=True)
class Uniform:
    """The same combo every active day."""
    combo: DayCombo


@dataclass(frozen=True)
class NonUniform:
    """One combo per weekday, index 0=Mon."""
    days: tuple[DayCombo, ...]


OptionType = Union[Uniform, NonUniform]


@dataclass(frozen=True)
class DosageOption:
    """
    A candidate weekly regimen produced by the generator.

    option_type        : Uniform(combo) or NonUniform(7 combos)
    stop_days          : weekdays with no dose at all
    weekly_dose_actual : mg actually delivered over the week
    description        : short human-readable summary
    """
    option_type: OptionType
    stop_days: frozenset[int] = frozenset()
    weekly_dose_actual: float = 0.0
    description: str = ""

    def day_combo(self, day_index: int) -> DayCombo:
        if day_index in self.stop_days:
            return EMPTY_DAY
        if isinstance(self.option_type, Uniform):
            return self.option_type.combo
        return self.option_type.days[day_index]

    def week(self) -> tuple[DayCombo, ...]:
        return tuple(self.day_combo(i) for i in range(7))


@dataclass(frozen=True)
class PillRenderData:
    mg: int
    count: int
    is_half: bool = False


@dataclass(frozen=True)
class DaySchedule:
    day_index: int
    total_dose: float
    pills: tuple[PillRenderData, ...] = ()
    is_stop_day: bool = False


@dataclass(frozen=True)
class FinalOutput:
    """
    Caller-facing result for one regimen.

    weekly_schedule always holds exactly 7 entries ordered Mon..Sun.
    """
    description: str
    weekly_dose_actual: float
    weekly_schedule: tuple[DaySchedule, ...] = field(default_factory=tuple)
    total_pills_message: str = ""
