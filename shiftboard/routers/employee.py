from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_employee
from ..schemas.request import AvailabilitySubmit
from ..services import requests as request_service
from ..services.access import AccessContext
from ..services.visibility import employee_shifts

router = APIRouter(prefix="/api/employee", tags=["employee"])


@router.get("/shifts")
async def my_shifts(
    start_date: date | None = None,
    end_date: date | None = None,
    context: AccessContext = Depends(require_employee),
    db: Session = Depends(get_db),
):
    shifts = employee_shifts(db, context.account_id, context.workplace_id, start_date, end_date)
    return JSONResponse({"shifts": [shift.model_dump(mode="json") for shift in shifts], "total": len(shifts)})


@router.get("/requests")
async def my_requests(context: AccessContext = Depends(require_employee), db: Session = Depends(get_db)):
    rows = request_service.my_requests(db, context.account_id, context.workplace_id)
    return JSONResponse({"requests": [request_service.serialize_request(row) for row in rows]})


@router.post("/requests")
async def submit_request(
    payload: AvailabilitySubmit,
    context: AccessContext = Depends(require_employee),
    db: Session = Depends(get_db),
):
    row = request_service.submit_request(db, context.account_id, context.workplace_id, payload.requests)
    return JSONResponse({"success": True, "request": request_service.serialize_request(row)})
