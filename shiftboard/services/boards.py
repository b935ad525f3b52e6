"""Lifecycle of the per-week shift board.

A (workplace, week) pair is *unboarded* until the first write creates its row,
*draft* while ``is_published`` is false and *published* once a snapshot of the
week's shifts has been frozen into ``content``. Every write goes through
:func:`_upsert_board`, which commits exactly once per transition.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..constants import SHIFT_PARTS
from ..errors import Internal, InvalidInput
from ..models import Shift, ShiftAssignment, ShiftBoard
from ..schemas.board import BoardPreferences, PreferencesView
from . import calendar

logger = logging.getLogger(__name__)

SHIFT_PART_ORDER = {part: index for index, part in enumerate(SHIFT_PARTS)}

BoardChange = Callable[[ShiftBoard], None]


def default_preferences() -> dict:
    return BoardPreferences().model_dump()


def find_board(db: Session, workplace_id: int, week_start: date) -> ShiftBoard | None:
    return (
        db.query(ShiftBoard)
        .filter(ShiftBoard.workplace_id == workplace_id, ShiftBoard.week_start_date == week_start)
        .one_or_none()
    )


def get_board(db: Session, workplace_id: int, week_start: date) -> ShiftBoard | None:
    calendar.require_week_start(week_start)
    try:
        return find_board(db, workplace_id, week_start)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to load shift board") from exc


def get_preferences(db: Session, workplace_id: int, week_start: date) -> PreferencesView:
    board = get_board(db, workplace_id, week_start)
    if board is None:
        return PreferencesView(preferences=BoardPreferences(), exists=False)
    return PreferencesView(
        preferences=_stored_preferences(board),
        is_published=bool(board.is_published),
        requests_window_start=calendar.as_utc(board.requests_window_start),
        requests_window_end=calendar.as_utc(board.requests_window_end),
        exists=True,
    )


def _stored_preferences(board: ShiftBoard) -> BoardPreferences:
    if not board.preferences:
        return BoardPreferences()
    try:
        return BoardPreferences.model_validate(board.preferences)
    except ValidationError:
        logger.warning("Board %s has unreadable preferences, using defaults", board.id)
        return BoardPreferences()


def validate_preferences(preferences: BoardPreferences | Mapping[str, Any]) -> BoardPreferences:
    if isinstance(preferences, BoardPreferences):
        return preferences
    try:
        return BoardPreferences.model_validate(preferences)
    except ValidationError as exc:
        raise InvalidInput(
            "Invalid preferences",
            details=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


def set_preferences(
    db: Session,
    workplace_id: int,
    week_start: date,
    preferences: BoardPreferences | Mapping[str, Any],
) -> ShiftBoard:
    """Store preferences for the week; publish state and snapshot are left alone."""
    calendar.require_week_start(week_start)
    validated = validate_preferences(preferences).model_dump()

    def change(board: ShiftBoard) -> None:
        board.preferences = dict(validated)

    return _upsert_board(db, workplace_id, week_start, change)


def set_request_window(
    db: Session,
    workplace_id: int,
    week_start: date,
    window_start: datetime,
    window_end: datetime,
) -> ShiftBoard:
    calendar.require_week_start(week_start)
    start = calendar.as_utc(window_start)
    end = calendar.as_utc(window_end)
    if end <= start:
        raise InvalidInput("End time must be after start time")

    def change(board: ShiftBoard) -> None:
        board.requests_window_start = start
        board.requests_window_end = end

    return _upsert_board(db, workplace_id, week_start, change)


def default_request_window(week_start: date) -> tuple[datetime, datetime]:
    """The week immediately before ``week_start``: day -7 through day -1."""
    return (
        calendar.start_of_day_utc(calendar.add_days(week_start, -7)),
        calendar.start_of_day_utc(calendar.add_days(week_start, -1)),
    )


def set_published(
    db: Session,
    workplace_id: int,
    week_start: date,
    is_published: bool,
    published_by: str,
    now: datetime | None = None,
) -> ShiftBoard:
    """Publish or unpublish a week.

    Publishing rebuilds the snapshot from the current shifts every time, so
    repeating it is safe. Unpublishing clears the snapshot but keeps
    preferences and the request window.
    """
    calendar.require_week_start(week_start)
    content: dict = {}
    if is_published:
        try:
            content = build_snapshot(db, workplace_id, week_start, published_by, now=now)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Snapshot for workplace %s week %s failed", workplace_id, week_start)
            raise Internal("Failed to fetch shifts for publishing") from exc

    window_start, window_end = default_request_window(week_start)

    def change(board: ShiftBoard) -> None:
        board.is_published = is_published
        board.content = content
        if not board.preferences:
            board.preferences = default_preferences()
        if board.requests_window_start is None or board.requests_window_end is None:
            board.requests_window_start = board.requests_window_start or window_start
            board.requests_window_end = board.requests_window_end or window_end

    board = _upsert_board(db, workplace_id, week_start, change)
    logger.info(
        "Workplace %s week %s %s by %s",
        workplace_id,
        week_start.isoformat(),
        "published" if is_published else "unpublished",
        published_by,
    )
    return board


def load_week_shifts(db: Session, workplace_id: int, week_start: date) -> list[Shift]:
    start, end = calendar.week_range(week_start)
    shifts = (
        db.query(Shift)
        .options(selectinload(Shift.assignments).selectinload(ShiftAssignment.account))
        .filter(Shift.workplace_id == workplace_id, Shift.shift_date >= start, Shift.shift_date <= end)
        .order_by(Shift.shift_date.asc(), Shift.id.asc())
        .all()
    )
    shifts.sort(key=lambda shift: (shift.shift_date, SHIFT_PART_ORDER.get(shift.shift_part, 99), shift.id))
    return shifts


def build_snapshot(
    db: Session,
    workplace_id: int,
    week_start: date,
    published_by: str,
    now: datetime | None = None,
) -> dict:
    shifts = load_week_shifts(db, workplace_id, week_start)
    entries = [_snapshot_shift(shift) for shift in shifts]
    return {
        "shifts": entries,
        "published_at": (now or calendar.utc_now()).isoformat(),
        "published_by": published_by,
        "total_shifts": len(entries),
        "total_assignments": sum(len(entry["workers"]) for entry in entries),
    }


def _snapshot_shift(shift: Shift) -> dict:
    workers = []
    for assignment in shift.assignments:
        account = assignment.account
        workers.append(
            {
                "id": assignment.id,
                "account_id": assignment.account_id,
                "assigned_at": assignment.assigned_at.isoformat() if assignment.assigned_at else None,
                "comment": assignment.comment,
                "full_name": account.full_name if account else None,
                "email": account.email if account else None,
            }
        )
    return {
        "id": shift.id,
        "shift_date": shift.shift_date.isoformat(),
        "shift_part": shift.shift_part,
        "workers": workers,
    }


def published_weeks(db: Session, workplace_id: int, week_starts: Iterable[date]) -> set[date]:
    weeks = set(week_starts)
    if not weeks:
        return set()
    rows = (
        db.query(ShiftBoard.week_start_date)
        .filter(
            ShiftBoard.workplace_id == workplace_id,
            ShiftBoard.week_start_date.in_(weeks),
            ShiftBoard.is_published.is_(True),
        )
        .all()
    )
    return {row.week_start_date for row in rows}


def _upsert_board(db: Session, workplace_id: int, week_start: date, change: BoardChange) -> ShiftBoard:
    """Apply ``change`` to the (workplace, week) row, creating it when missing.

    A concurrent request may create the row between our read and insert; the
    unique constraint rejects our insert and the change is replayed on the row
    that won.
    """
    try:
        board = find_board(db, workplace_id, week_start)
        if board is None:
            board = ShiftBoard(workplace_id=workplace_id, week_start_date=week_start, is_published=False, content={})
            change(board)
            db.add(board)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                board = find_board(db, workplace_id, week_start)
                if board is None:
                    raise
                change(board)
                db.commit()
        else:
            change(board)
            db.commit()
        db.refresh(board)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Saving shift board for workplace %s week %s failed", workplace_id, week_start)
        raise Internal("Failed to save shift board") from exc
    return board
