from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import get_settings
from ..constants import SESSION_IDENTITY_KEY
from ..db import get_db
from ..deps import require_identity
from ..errors import Unauthorized
from ..schemas.auth import AccountRead, ExternalIdentity, OnboardingRequest
from ..services.identity import reconcile_identity, redirect_for
from ..services.onboarding import complete_onboarding

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
settings = get_settings()


def _check_callback_token(token: str | None) -> None:
    expected = settings.identity_callback_token
    if not expected:
        if settings.environment == "development":
            logger.warning("IDENTITY_CALLBACK_TOKEN is not set, accepting unsigned callbacks")
            return
        raise Unauthorized("Identity callback is not configured")
    if not token or not secrets.compare_digest(token, expected):
        raise Unauthorized("Invalid identity callback token")


@router.post("/callback")
async def auth_callback(
    request: Request,
    identity: ExternalIdentity,
    x_identity_token: str | None = Header(default=None, alias="X-Identity-Token"),
    db: Session = Depends(get_db),
):
    _check_callback_token(x_identity_token)
    account = reconcile_identity(db, identity)
    request.session[SESSION_IDENTITY_KEY] = identity.model_dump(mode="json")
    return JSONResponse(
        {
            "account": AccountRead.model_validate(account).model_dump(mode="json"),
            "redirect": redirect_for(account),
        }
    )


@router.post("/signup")
async def signup(
    payload: OnboardingRequest,
    identity: ExternalIdentity = Depends(require_identity),
    db: Session = Depends(get_db),
):
    result = complete_onboarding(db, identity, payload)
    return JSONResponse(result.model_dump(mode="json"))


@router.post("/signout")
async def signout(request: Request):
    request.session.clear()
    return JSONResponse({"success": True})
