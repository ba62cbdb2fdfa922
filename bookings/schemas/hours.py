"""Working-hours schemas."""

from __future__ import annotations

from datetime import time

from pydantic import BaseModel, Field, field_validator, model_validator


def _normalize_time(value) -> str:
    """Accept HH:MM or HH:MM:SS (or a time) and store HH:MM:SS."""
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    text = str(value).strip()
    parsed = time.fromisoformat(text)
    return parsed.strftime("%H:%M:%S")


class BreakTime(BaseModel):
    start: str
    end: str

    @field_validator("start", "end", mode="before")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

    @model_validator(mode="after")
    def check_order(self) -> "BreakTime":
        if self.start >= self.end:
            raise ValueError("break start must be before break end")
        return self


class DayHoursConfig(BaseModel):
    """Editable hours for one or more specific dates."""

    start_time: str = "10:00:00"
    end_time: str = "14:30:00"
    last_appointment_time: str = "14:00:00"
    slot_interval_minutes: int = Field(default=30, gt=0, le=240)
    break_times: list[BreakTime] = Field(default_factory=list)
    is_holiday: bool = False
    holiday_reason_en: str = ""
    holiday_reason_ar: str = ""

    @field_validator("start_time", "end_time", "last_appointment_time", mode="before")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

    @model_validator(mode="after")
    def check_within_hours(self) -> "DayHoursConfig":
        if self.is_holiday:
            return self
        if self.start_time >= self.end_time:
            raise ValueError("start time must be before end time")
        if not (self.start_time <= self.last_appointment_time <= self.end_time):
            raise ValueError("last appointment must fall within working hours")
        for bt in self.break_times:
            if bt.start < self.start_time or bt.end > self.end_time:
                raise ValueError("break times must fall within working hours")
        return self


class DefaultHoursUpdate(BaseModel):
    start_time: str
    end_time: str
    last_appointment_time: str
    slot_interval_minutes: int = Field(default=30, gt=0, le=240)

    @field_validator("start_time", "end_time", "last_appointment_time", mode="before")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

    @model_validator(mode="after")
    def check_within_hours(self) -> "DefaultHoursUpdate":
        if self.start_time >= self.end_time:
            raise ValueError("start time must be before end time")
        if not (self.start_time <= self.last_appointment_time <= self.end_time):
            raise ValueError("last appointment must fall within working hours")
        return self


class DefaultHoursResponse(BaseModel):
    day_of_week: int
    day_name_en: str
    day_name_ar: str
    start_time: str
    end_time: str
    last_appointment_time: str
    slot_interval_minutes: int
    is_active: bool

    model_config = {"from_attributes": True}
