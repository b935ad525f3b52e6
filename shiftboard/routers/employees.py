from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_manager
from ..schemas.auth import AccountRead
from ..services import employees as employee_service
from ..services import requests as request_service
from ..services.access import AccessContext

router = APIRouter(prefix="/api/manager", tags=["employees"])


def _account_json(account) -> dict:
    return AccountRead.model_validate(account).model_dump(mode="json")


@router.get("/employees")
async def list_employees(context: AccessContext = Depends(require_manager), db: Session = Depends(get_db)):
    roster = employee_service.list_employees(db, context)
    return JSONResponse(
        {
            "employees": {
                "approved": [_account_json(account) for account in roster["approved"]],
                "pending": [_account_json(account) for account in roster["pending"]],
                "total": roster["total"],
            }
        }
    )


@router.post("/employees/{account_id}/approve")
async def approve_employee(
    account_id: str,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    employee = employee_service.approve_employee(db, context, account_id)
    return JSONResponse({"success": True, "employee": _account_json(employee)})


@router.post("/employees/{account_id}/reject")
async def reject_employee(
    account_id: str,
    context: AccessContext = Depends(require_manager),
    db: Session = Depends(get_db),
):
    employee_service.reject_employee(db, context, account_id)
    return JSONResponse({"success": True, "message": "Employee rejected and removed"})


@router.get("/requests")
async def workplace_requests(context: AccessContext = Depends(require_manager), db: Session = Depends(get_db)):
    rows = request_service.workplace_requests(db, context.workplace_id)
    return JSONResponse({"requests": [request_service.serialize_request(row) for row in rows]})
