"""Pydantic models for the JSON boundary: one request in, ranked regimens out."""
from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field

from .errors import InvalidInput
from .helpers import WEEKDAY_NAMES
from .types import CalculationInput, FinalOutput


class CalculationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    weekly_dose: float = Field(..., description="Target dose over 7 days, mg")
    allow_half: bool = False
    available_pills: List[int] = Field(default_factory=list, description="Tablet strengths, mg")
    special_day_pattern: str = "MonWedFri"
    days_until_appointment: int = 0
    start_day_of_week: int = Field(0, description="0=Mon ... 6=Sun")

    def to_input(self) -> CalculationInput:
        # The pattern is checked by validate_input, not here, so the error
        # surfaces as InvalidInput on the same field either way.
        return CalculationInput(
            weekly_dose=self.weekly_dose,
            allow_half=self.allow_half,
            available_pills=frozenset(self.available_pills),
            special_day_pattern=self.special_day_pattern,  # type: ignore[arg-type]
            days_until_appointment=self.days_until_appointment,
            start_day_of_week=self.start_day_of_week,
        )


class PillModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mg: int
    count: int
    is_half: bool = False


class DayScheduleModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day_index: int
    total_dose: float
    pills: List[PillModel] = Field(default_factory=list)
    is_stop_day: bool = False

    @computed_field
    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[self.day_index]


class FinalOutputModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    description: str
    weekly_dose_actual: float
    weekly_schedule: List[DayScheduleModel]
    total_pills_message: str


class SolveResponse(BaseModel):
    options: List[FinalOutputModel] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def from_outputs(cls, outputs: List[FinalOutput]) -> "SolveResponse":
        return cls(options=[FinalOutputModel.model_validate(o) for o in outputs])


def parse_request(payload: Union[str, bytes, Mapping[str, Any]]) -> CalculationInput:
    """
    Decode a JSON document (or an already-decoded mapping) into a CalculationInput.
    Shape and type problems are raised as InvalidInput naming the first bad field.
    """
    try:
        if isinstance(payload, (str, bytes, bytearray)):
            request = CalculationRequest.model_validate_json(payload)
        else:
            request = CalculationRequest.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise InvalidInput(field, first.get("msg", "is invalid").lower() + ".") from e
    return request.to_input()
