from __future__ import annotations

import logging
import re

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import EMPLOYEE_HOME, MANAGER_HOME, ONBOARDING_REDIRECT, PENDING_APPROVAL_REDIRECT
from ..errors import AccountConflict, Internal, ProvisioningFailed
from ..models import Account
from ..schemas.auth import ExternalIdentity
from . import accounts

logger = logging.getLogger(__name__)

_USERNAME_STRIP = re.compile(r"[^a-z0-9]")


def generate_username(email: str) -> str:
    return _USERNAME_STRIP.sub("", email.split("@")[0].lower())


def email_local_part(email: str | None) -> str | None:
    if not email:
        return None
    return email.split("@")[0] or None


def display_name(identity: ExternalIdentity) -> str:
    metadata = identity.user_metadata
    return (
        metadata.get("full_name")
        or metadata.get("name")
        or email_local_part(identity.email)
        or "User"
    )


def username_for(identity: ExternalIdentity) -> str:
    return generate_username(identity.email or f"user_{identity.id}")


def reconcile_identity(db: Session, identity: ExternalIdentity) -> Account:
    """Return the account for ``identity``, creating it if provisioning has not run yet.

    The provisioning trigger in the store may insert the same row concurrently.
    Losing that race is expected: the conflict is swallowed and the winner's
    row is fetched and returned.
    """
    try:
        account = accounts.find_account(db, identity.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to load account") from exc
    if account is not None:
        return account

    logger.info("Account %s missing after sign-in, provisioning it", identity.id)
    metadata = identity.user_metadata
    try:
        return accounts.insert_account(
            db,
            id=identity.id,
            email=identity.email or "",
            username=username_for(identity),
            full_name=display_name(identity),
            is_manager=False,
            is_active=True,
            is_approved=False,
            workplace_id=None,
            external_ref=metadata.get("sub"),
            avatar_url=metadata.get("avatar_url"),
        )
    except AccountConflict:
        logger.info("Account %s was provisioned concurrently, using existing row", identity.id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Provisioning failed for %s", identity.id)
        raise ProvisioningFailed("Profile creation failed") from exc

    account = accounts.find_account(db, identity.id)
    if account is None:
        raise ProvisioningFailed("Profile could not be loaded after provisioning")
    return account


def redirect_for(account: Account) -> str:
    if not account.workplace_id:
        return ONBOARDING_REDIRECT
    if account.is_manager:
        return MANAGER_HOME
    if account.is_approved:
        return EMPLOYEE_HOME
    return PENDING_APPROVAL_REDIRECT
