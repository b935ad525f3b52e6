from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_manager
from ..schemas.board import PreferencesUpdate, PublishRequest, RequestWindowUpdate, ShiftBoardRead
from ..services import boards, calendar, shifts as shift_service
from ..services.access import AccessContext

router = APIRouter(prefix="/api/manager/schedule", tags=["schedule"])


def _board_json(board) -> dict | None:
    if board is None:
        return None
    return ShiftBoardRead.model_validate(board).model_dump(mode="json")


@router.get("/preferences")
async def get_preferences(
    week_start: date = Query(...),
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    view = boards.get_preferences(db, context.workplace_id, week_start)
    return JSONResponse(view.model_dump(mode="json"))


@router.put("/preferences")
async def update_preferences(
    payload: PreferencesUpdate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    board = boards.set_preferences(db, context.workplace_id, payload.week_start, payload.preferences)
    return JSONResponse({"success": True, "shift_board": _board_json(board)})


@router.put("/request-window")
async def update_request_window(
    payload: RequestWindowUpdate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    board = boards.set_request_window(
        db,
        context.workplace_id,
        payload.week_start,
        payload.requests_window_start,
        payload.requests_window_end,
    )
    return JSONResponse({"success": True, "shift_board": _board_json(board)})


@router.get("/publish")
async def get_publish_state(
    week_start: date = Query(...),
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    board = boards.get_board(db, context.workplace_id, week_start)
    return JSONResponse({"shift_board": _board_json(board)})


@router.post("/publish")
async def publish_week(
    payload: PublishRequest,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    board = boards.set_published(
        db,
        context.workplace_id,
        payload.week_start,
        payload.is_published,
        published_by=context.account_id,
    )
    return JSONResponse({"success": True, "shift_board": _board_json(board)})


@router.get("/assignments")
async def week_assignments(
    week_start: date = Query(...),
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    calendar.require_week_start(week_start)
    return JSONResponse({"assignments": shift_service.week_assignments(db, context, week_start)})


@router.get("/start-date")
async def current_week(context: AccessContext = Depends(require_manager)):
    return JSONResponse({"start_date": calendar.current_week_start().isoformat()})
