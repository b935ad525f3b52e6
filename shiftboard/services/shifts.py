from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..errors import Conflict, Internal, InvalidInput, NotFound, ScheduleError
from ..models import Account, Shift, ShiftAssignment
from ..schemas.shift import ShiftCreate, ShiftUpdate
from . import calendar
from .access import AccessContext, ensure_same_workplace

logger = logging.getLogger(__name__)


@dataclass
class ShiftCreation:
    shift: Shift
    warning: str | None = None


@dataclass
class GeneratedShifts:
    count: int
    shifts: list[Shift] = field(default_factory=list)
    message: str | None = None


def _slot_exists(db: Session, workplace_id: int, shift_date: date, shift_part: str) -> bool:
    return (
        db.query(Shift.id)
        .filter(
            Shift.workplace_id == workplace_id,
            Shift.shift_date == shift_date,
            Shift.shift_part == shift_part,
        )
        .first()
        is not None
    )


def get_shift(db: Session, context: AccessContext, shift_id: int) -> Shift:
    shift = db.query(Shift).filter(Shift.id == shift_id).one_or_none()
    if shift is None:
        raise NotFound("Shift not found")
    ensure_same_workplace(context, shift.workplace_id, "Shift does not belong to your workplace")
    return shift


def list_shifts(db: Session, context: AccessContext, start: date | None = None, end: date | None = None) -> list[Shift]:
    query = (
        db.query(Shift)
        .options(selectinload(Shift.assignments).selectinload(ShiftAssignment.account))
        .filter(Shift.workplace_id == context.workplace_id)
    )
    if start:
        query = query.filter(Shift.shift_date >= start)
    if end:
        query = query.filter(Shift.shift_date <= end)
    return query.order_by(Shift.shift_date.asc(), Shift.id.asc()).all()


def create_shift(db: Session, context: AccessContext, payload: ShiftCreate) -> ShiftCreation:
    if _slot_exists(db, context.workplace_id, payload.shift_date, payload.shift_part):
        raise Conflict("Shift already exists for this date and time")
    shift = Shift(workplace_id=context.workplace_id, shift_date=payload.shift_date, shift_part=payload.shift_part)
    db.add(shift)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Shift already exists for this date and time") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to create shift") from exc
    db.refresh(shift)

    warning = None
    if payload.account_id:
        # The shift stays even when the worker cannot be assigned.
        try:
            assign_worker(db, context, shift.id, payload.account_id, payload.comment)
        except ScheduleError as exc:
            warning = f"Shift created but failed to assign worker: {exc.message}"
            logger.warning("Shift %s: %s", shift.id, warning)
    return ShiftCreation(shift=shift, warning=warning)


def create_shifts(db: Session, context: AccessContext, payloads: list[ShiftCreate]) -> list[Shift]:
    """Insert every slot that does not exist yet; existing slots are skipped."""
    return _insert_missing_slots(
        db,
        context.workplace_id,
        [(payload.shift_date, payload.shift_part) for payload in payloads],
    )


def _insert_missing_slots(db: Session, workplace_id: int, slots: list[tuple[date, str]]) -> list[Shift]:
    created: list[Shift] = []
    seen: set[tuple[date, str]] = set()
    for shift_date, shift_part in slots:
        key = (shift_date, shift_part)
        if key in seen or _slot_exists(db, workplace_id, shift_date, shift_part):
            continue
        seen.add(key)
        shift = Shift(workplace_id=workplace_id, shift_date=shift_date, shift_part=shift_part)
        db.add(shift)
        try:
            db.commit()
        except IntegrityError:
            # Another request filled the slot meanwhile.
            db.rollback()
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            raise Internal("Failed to create shifts") from exc
        db.refresh(shift)
        created.append(shift)
    return created


def update_shift(db: Session, context: AccessContext, shift_id: int, payload: ShiftUpdate) -> Shift:
    shift = get_shift(db, context, shift_id)
    target_date = payload.shift_date or shift.shift_date
    target_part = payload.shift_part or shift.shift_part
    if (target_date, target_part) != (shift.shift_date, shift.shift_part) and _slot_exists(
        db, context.workplace_id, target_date, target_part
    ):
        raise Conflict("Shift already exists for this date and time")
    shift.shift_date = target_date
    shift.shift_part = target_part
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Shift already exists for this date and time") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to update shift") from exc
    db.refresh(shift)
    return shift


def delete_shift(db: Session, context: AccessContext, shift_id: int) -> None:
    shift = get_shift(db, context, shift_id)
    db.delete(shift)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to delete shift") from exc


def _eligible_worker(db: Session, context: AccessContext, account_id: str) -> Account:
    worker = db.query(Account).filter(Account.id == account_id).one_or_none()
    if worker is None:
        raise NotFound("Worker not found")
    ensure_same_workplace(context, worker.workplace_id, "Worker does not belong to your workplace")
    if not worker.is_approved:
        raise InvalidInput("Worker is not approved yet")
    return worker


def assign_worker(
    db: Session,
    context: AccessContext,
    shift_id: int,
    account_id: str,
    comment: str | None = None,
) -> ShiftAssignment:
    shift = get_shift(db, context, shift_id)
    _eligible_worker(db, context, account_id)
    existing = (
        db.query(ShiftAssignment.id)
        .filter(ShiftAssignment.shift_id == shift.id, ShiftAssignment.account_id == account_id)
        .first()
    )
    if existing:
        raise Conflict("Worker is already assigned to this shift")
    assignment = ShiftAssignment(shift_id=shift.id, account_id=account_id, comment=comment or None)
    db.add(assignment)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Worker is already assigned to this shift") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to assign worker") from exc
    db.refresh(assignment)
    return assignment


def remove_worker(db: Session, context: AccessContext, shift_id: int, account_id: str) -> None:
    shift = get_shift(db, context, shift_id)
    _eligible_worker(db, context, account_id)
    try:
        db.query(ShiftAssignment).filter(
            ShiftAssignment.shift_id == shift.id,
            ShiftAssignment.account_id == account_id,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to remove worker") from exc


def update_assignment_comment(
    db: Session,
    context: AccessContext,
    shift_id: int,
    assignment_id: int,
    comment: str,
) -> ShiftAssignment:
    shift = get_shift(db, context, shift_id)
    assignment = (
        db.query(ShiftAssignment)
        .filter(ShiftAssignment.id == assignment_id, ShiftAssignment.shift_id == shift.id)
        .one_or_none()
    )
    if assignment is None:
        raise NotFound("Worker assignment not found")
    assignment.comment = comment
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to update comment") from exc
    db.refresh(assignment)
    return assignment


def generate_shifts(db: Session, context: AccessContext, source_week: date, target_week: date) -> GeneratedShifts:
    """Copy the source week's slots (not its assignments) onto the target week."""
    source_start, source_end = calendar.week_range(source_week)
    delta = calendar.day_delta(source_week, target_week)
    source = (
        db.query(Shift.shift_date, Shift.shift_part)
        .filter(
            Shift.workplace_id == context.workplace_id,
            Shift.shift_date >= source_start,
            Shift.shift_date <= source_end,
        )
        .order_by(Shift.shift_date.asc(), Shift.id.asc())
        .all()
    )
    if not source:
        return GeneratedShifts(count=0, message="No shifts found in source week")

    slots = [(calendar.add_days(row.shift_date, delta), row.shift_part) for row in source]
    created = _insert_missing_slots(db, context.workplace_id, slots)
    logger.info(
        "Generated %s shift(s) for workplace %s from %s onto %s",
        len(created),
        context.workplace_id,
        source_week.isoformat(),
        target_week.isoformat(),
    )
    return GeneratedShifts(count=len(created), shifts=created)


def week_assignments(db: Session, context: AccessContext, week_start: date) -> list[dict]:
    start, end = calendar.week_range(week_start)
    shifts = list_shifts(db, context, start, end)
    assignments: list[dict] = []
    for shift in shifts:
        for assignment in shift.assignments:
            account = assignment.account
            assignments.append(
                {
                    "id": f"{shift.id}-{assignment.account_id}",
                    "shift_id": shift.id,
                    "account_id": assignment.account_id,
                    "user_name": (account.full_name or account.username) if account else "Unknown",
                    "comment": assignment.comment,
                    "shift_date": shift.shift_date.isoformat(),
                    "shift_part": shift.shift_part,
                }
            )
    return assignments


def serialize_shift(shift: Shift) -> dict:
    return {
        "id": shift.id,
        "shift_date": shift.shift_date.isoformat(),
        "shift_part": shift.shift_part,
        "created_at": shift.created_at.isoformat() if shift.created_at else None,
        "workers": [
            {
                "id": assignment.id,
                "account_id": assignment.account_id,
                "comment": assignment.comment,
                "full_name": assignment.account.full_name if assignment.account else None,
                "email": assignment.account.email if assignment.account else None,
                "avatar_url": assignment.account.avatar_url if assignment.account else None,
            }
            for assignment in shift.assignments
        ],
    }
