"""Profile completion: create a workplace as its manager, or join one as an employee."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Conflict, Forbidden, Internal, NotFound, ScheduleError
from ..schemas.auth import ExternalIdentity, OnboardingRequest, OnboardingResult
from . import accounts
from .identity import username_for

logger = logging.getLogger(__name__)


def complete_onboarding(db: Session, identity: ExternalIdentity, payload: OnboardingRequest) -> OnboardingResult:
    existing = accounts.find_account(db, identity.id)
    if existing is not None and existing.workplace_id:
        raise Conflict("Profile already exists")

    if payload.role == "manager":
        return _onboard_manager(db, identity, payload)
    return _onboard_employee(db, identity, payload)


def _account_fields(identity: ExternalIdentity, payload: OnboardingRequest) -> dict:
    metadata = identity.user_metadata
    return {
        "email": identity.email or "",
        "username": username_for(identity),
        "full_name": payload.full_name or "User",
        "is_active": True,
        "external_ref": metadata.get("sub"),
        "avatar_url": metadata.get("avatar_url"),
    }


def _onboard_manager(db: Session, identity: ExternalIdentity, payload: OnboardingRequest) -> OnboardingResult:
    if not payload.invite_code:
        raise Forbidden("Invite code required for managers")
    invite = accounts.find_invite(db, payload.invite_code)
    if invite is None or invite.is_used:
        raise Forbidden("Invalid or used invite code")

    if accounts.find_workplace_by_business_name(db, payload.business_name) is not None:
        raise Conflict("Business name already exists")

    # Claimed before any write; a lost claim means another sign-up spent the code.
    if not accounts.mark_invite_used(db, payload.invite_code):
        raise Forbidden("Invalid or used invite code")

    try:
        account, workplace = _create_workplace(db, identity, payload)
    except ScheduleError:
        _release_invite(db, payload.invite_code)
        raise

    logger.info("Workplace %s created by manager %s", workplace.id, account.id)
    return OnboardingResult(role="manager", workplace_id=workplace.id)


def _create_workplace(db: Session, identity: ExternalIdentity, payload: OnboardingRequest):
    # The workplace row references its manager, so the account must exist first.
    try:
        account = accounts.upsert_account(
            db,
            identity.id,
            is_manager=True,
            is_approved=True,
            workplace_id=None,
            **_account_fields(identity, payload),
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to save manager profile") from exc

    workplace = accounts.insert_workplace(
        db,
        name=payload.full_name,
        business_name=payload.business_name,
        manager_id=account.id,
    )

    try:
        accounts.update_account(db, account, workplace_id=workplace.id)
    except SQLAlchemyError as exc:
        logger.warning("Linking %s to workplace %s failed, removing workplace", account.id, workplace.id)
        try:
            accounts.delete_workplace(db, workplace.id)
        except Internal:
            logger.exception("Workplace %s could not be removed after failed link", workplace.id)
        raise Internal(f"Failed to link workplace: {exc}") from exc
    return account, workplace


def _release_invite(db: Session, code: str) -> None:
    try:
        accounts.release_invite(db, code)
    except Internal:
        logger.exception("Invite %s stays claimed after failed onboarding", code)



def _onboard_employee(db: Session, identity: ExternalIdentity, payload: OnboardingRequest) -> OnboardingResult:
    workplace = accounts.find_workplace_by_business_name(db, payload.business_name)
    if workplace is None:
        raise NotFound("Business not found")

    try:
        accounts.upsert_account(
            db,
            identity.id,
            is_manager=False,
            is_approved=False,
            workplace_id=workplace.id,
            **_account_fields(identity, payload),
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to save employee profile") from exc

    logger.info("Account %s joined workplace %s pending approval", identity.id, workplace.id)
    return OnboardingResult(role="employee", workplace_id=workplace.id, pending=True)
