from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ShiftPart = Literal["morning", "noon", "evening"]


class ShiftCreate(BaseModel):
    shift_date: date
    shift_part: ShiftPart
    account_id: str | None = None
    comment: str | None = None


class ShiftBatchCreate(BaseModel):
    shifts: list[ShiftCreate] = Field(..., min_length=1)


class ShiftUpdate(BaseModel):
    shift_date: date | None = None
    shift_part: ShiftPart | None = None


class WorkerAction(BaseModel):
    account_id: str = Field(..., min_length=1)
    action: Literal["add", "remove"]
    comment: str | None = None


class AssignmentCommentUpdate(BaseModel):
    comment: str


class GenerateShiftsRequest(BaseModel):
    source_week_start: date
    target_week_start: date


class AssignmentRead(BaseModel):
    id: int
    shift_id: int
    account_id: str
    comment: str | None = None
    assigned_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ShiftRead(BaseModel):
    id: int
    workplace_id: int
    shift_date: date
    shift_part: ShiftPart
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeShift(BaseModel):
    assignment_id: int
    assigned_at: datetime | None = None
    comment: str | None = None
    id: int
    shift_date: date | None = None
    shift_part: ShiftPart
    workplace_id: int
