from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    DEFAULT_CLOSED_DAYS,
    DEFAULT_SHIFTS_PER_DAY,
    MAX_SHIFTS_PER_DAY,
    MIN_SHIFTS_PER_DAY,
)

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


class BoardPreferences(BaseModel):
    closed_days: list[Weekday] = Field(default_factory=lambda: list(DEFAULT_CLOSED_DAYS))
    shifts_per_day: int = Field(default=DEFAULT_SHIFTS_PER_DAY, ge=MIN_SHIFTS_PER_DAY, le=MAX_SHIFTS_PER_DAY)

    @field_validator("closed_days", mode="before")
    @classmethod
    def _normalize_days(cls, value):
        if isinstance(value, list):
            return [item.strip().lower() if isinstance(item, str) else item for item in value]
        return value

    @field_validator("closed_days")
    @classmethod
    def _dedupe_days(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class PreferencesUpdate(BaseModel):
    week_start: date
    preferences: BoardPreferences


class RequestWindowUpdate(BaseModel):
    week_start: date
    requests_window_start: datetime
    requests_window_end: datetime


class PublishRequest(BaseModel):
    week_start: date
    is_published: bool


class PreferencesView(BaseModel):
    preferences: BoardPreferences
    is_published: bool = False
    requests_window_start: datetime | None = None
    requests_window_end: datetime | None = None
    exists: bool


class ShiftBoardRead(BaseModel):
    id: int
    workplace_id: int
    week_start_date: date
    is_published: bool
    preferences: dict[str, Any] | None = None
    requests_window_start: datetime | None = None
    requests_window_end: datetime | None = None
    content: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
