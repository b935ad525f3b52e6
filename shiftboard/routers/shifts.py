from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_manager
from ..schemas.shift import (
    AssignmentCommentUpdate,
    AssignmentRead,
    GenerateShiftsRequest,
    ShiftBatchCreate,
    ShiftCreate,
    ShiftRead,
    ShiftUpdate,
    WorkerAction,
)
from ..services import shifts as shift_service
from ..services.access import AccessContext

router = APIRouter(prefix="/api/manager/shifts", tags=["shifts"])


def _shift_json(shift) -> dict:
    return ShiftRead.model_validate(shift).model_dump(mode="json")


@router.get("")
async def list_shifts(
    start_date: date | None = None,
    end_date: date | None = None,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    shifts = shift_service.list_shifts(db, context, start_date, end_date)
    return JSONResponse({"shifts": [shift_service.serialize_shift(shift) for shift in shifts]})


@router.post("")
async def create_shift(
    payload: ShiftCreate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    created = shift_service.create_shift(db, context, payload)
    body = {"success": True, "shift": _shift_json(created.shift)}
    if created.warning:
        body["warning"] = created.warning
    return JSONResponse(body)


@router.post("/batch")
async def create_shifts(
    payload: ShiftBatchCreate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    created = shift_service.create_shifts(db, context, payload.shifts)
    return JSONResponse({"success": True, "shifts": [_shift_json(shift) for shift in created]})


@router.post("/generate")
async def generate_shifts(
    payload: GenerateShiftsRequest,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    result = shift_service.generate_shifts(db, context, payload.source_week_start, payload.target_week_start)
    body = {
        "success": True,
        "count": result.count,
        "shifts": [_shift_json(shift) for shift in result.shifts],
    }
    if result.message:
        body["message"] = result.message
    return JSONResponse(body)


@router.put("/{shift_id}")
async def update_shift(
    shift_id: int,
    payload: ShiftUpdate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    shift = shift_service.update_shift(db, context, shift_id, payload)
    return JSONResponse({"success": True, "shift": _shift_json(shift)})


@router.delete("/{shift_id}")
async def delete_shift(
    shift_id: int,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    shift_service.delete_shift(db, context, shift_id)
    return JSONResponse({"success": True})


@router.post("/{shift_id}/workers")
async def change_worker(
    shift_id: int,
    payload: WorkerAction,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    if payload.action == "add":
        assignment = shift_service.assign_worker(db, context, shift_id, payload.account_id, payload.comment)
        return JSONResponse(
            {"success": True, "assignment": AssignmentRead.model_validate(assignment).model_dump(mode="json")}
        )
    shift_service.remove_worker(db, context, shift_id, payload.account_id)
    return JSONResponse({"success": True, "message": "Worker removed from shift"})


@router.patch("/{shift_id}/workers/{assignment_id}")
async def update_worker_comment(
    shift_id: int,
    assignment_id: int,
    payload: AssignmentCommentUpdate,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    assignment = shift_service.update_assignment_comment(db, context, shift_id, assignment_id, payload.comment)
    return JSONResponse({"success": True, "assignment": AssignmentRead.model_validate(assignment).model_dump(mode="json")})
