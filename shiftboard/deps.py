"""FastAPI dependencies wiring the session identity into the access layers."""

from __future__ import annotations

from fastapi import Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .constants import SESSION_IDENTITY_KEY
from .db import get_db
from .errors import Unauthorized
from .models import Account
from .schemas.auth import ExternalIdentity
from .services import access
from .services.access import AccessContext
from .services.identity import reconcile_identity


def current_identity(request: Request) -> ExternalIdentity | None:
    payload = request.session.get(SESSION_IDENTITY_KEY)
    if not payload:
        return None
    try:
        return ExternalIdentity.model_validate(payload)
    except ValidationError:
        request.session.pop(SESSION_IDENTITY_KEY, None)
        return None


def require_identity(identity: ExternalIdentity | None = Depends(current_identity)) -> ExternalIdentity:
    if identity is None:
        raise Unauthorized("Unauthorized")
    return identity


def require_account(
    identity: ExternalIdentity = Depends(require_identity),
    db: Session = Depends(get_db),
) -> Account:
    return access.authenticated(reconcile_identity(db, identity))


def require_onboarded(account: Account = Depends(require_account)) -> AccessContext:
    return access.onboarded(account)


def require_manager(account: Account = Depends(require_account)) -> AccessContext:
    return access.manager_only(account)


def require_employee(account: Account = Depends(require_account)) -> AccessContext:
    return access.employee_only(account)
