from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import require_account
from ..errors import Internal, InvalidInput
from ..models import Account
from ..schemas.profile import ProfileRead, ProfileUpdate, WorkplaceRead
from ..services import accounts

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("")
async def get_profile(account: Account = Depends(require_account), db: Session = Depends(get_db)):
    profile = ProfileRead.model_validate(account)
    if account.workplace_id:
        workplace = accounts.find_workplace(db, account.workplace_id)
        if workplace is not None:
            profile.workplace = WorkplaceRead.model_validate(workplace)
    return JSONResponse({"profile": profile.model_dump(mode="json")})


@router.put("")
async def update_profile(
    payload: ProfileUpdate,
    account: Account = Depends(require_account),
    db: Session = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    if not updates:
        raise InvalidInput("No updates provided")
    try:
        account = accounts.update_account(db, account, **updates)
    except SQLAlchemyError as exc:
        raise Internal("Failed to update profile") from exc
    return JSONResponse({"success": True, "profile": ProfileRead.model_validate(account).model_dump(mode="json")})
