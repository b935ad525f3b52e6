"""What an employee is allowed to see of their own assignments.

Past shifts are always visible. Shifts dated today or later only show up once
their week's board is published.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import EMPLOYEE_SHIFT_HORIZON_DAYS
from ..errors import Internal, InvalidInput
from ..models import Shift, ShiftAssignment
from ..schemas.shift import EmployeeShift
from . import boards, calendar


def filter_visible(
    db: Session,
    workplace_id: int,
    shifts: Sequence[EmployeeShift],
    today: date | None = None,
) -> list[EmployeeShift]:
    today = today or calendar.utc_today()
    upcoming_weeks = {
        calendar.week_start(shift.shift_date)
        for shift in shifts
        if shift.shift_date is not None and shift.shift_date >= today
    }
    published = boards.published_weeks(db, workplace_id, upcoming_weeks)

    visible = [shift for shift in shifts if _is_visible(shift, today, published)]
    # sorted() is stable, so same-day shifts keep their input order.
    return sorted(visible, key=lambda shift: shift.shift_date)


def _is_visible(shift: EmployeeShift, today: date, published: set[date]) -> bool:
    if shift.shift_date is None:
        return False
    if shift.shift_date < today:
        return True
    return calendar.week_start(shift.shift_date) in published


def employee_shifts(
    db: Session,
    account_id: str,
    workplace_id: int,
    start: date | None = None,
    end: date | None = None,
    today: date | None = None,
) -> list[EmployeeShift]:
    today = today or calendar.utc_today()
    start = start or today
    end = end or today + timedelta(days=EMPLOYEE_SHIFT_HORIZON_DAYS)
    if end < start:
        raise InvalidInput("end_date must not be before start_date")

    try:
        rows = (
            db.query(ShiftAssignment, Shift)
            .join(Shift, ShiftAssignment.shift_id == Shift.id)
            .filter(
                ShiftAssignment.account_id == account_id,
                Shift.workplace_id == workplace_id,
                Shift.shift_date >= start,
                Shift.shift_date <= end,
            )
            .order_by(ShiftAssignment.id.asc())
            .all()
        )
        assigned = [
            EmployeeShift(
                assignment_id=assignment.id,
                assigned_at=assignment.assigned_at,
                comment=assignment.comment,
                id=shift.id,
                shift_date=shift.shift_date,
                shift_part=shift.shift_part,
                workplace_id=shift.workplace_id,
            )
            for assignment, shift in rows
        ]
        return filter_visible(db, workplace_id, assigned, today=today)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to load shifts") from exc
