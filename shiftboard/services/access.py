"""Layered authorization checks.

Each layer only runs once the previous one passed. The manager and employee
gates return an :class:`AccessContext` whose ``workplace_id`` is the scope every
downstream query must be filtered by.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..constants import ONBOARDING_REDIRECT, PENDING_APPROVAL_REDIRECT
from ..errors import Forbidden, Incomplete, Unauthorized
from ..models import Account


@dataclass(frozen=True)
class AccessContext:
    account: Account
    workplace_id: int

    @property
    def account_id(self) -> str:
        return self.account.id


def authenticated(account: Account | None) -> Account:
    if account is None:
        raise Unauthorized("Unauthorized")
    return account


def onboarded(account: Account | None) -> AccessContext:
    account = authenticated(account)
    if not account.workplace_id:
        raise Incomplete(
            "Please complete your profile by selecting a workplace",
            redirect=ONBOARDING_REDIRECT,
        )
    return AccessContext(account=account, workplace_id=account.workplace_id)


def manager_only(account: Account | None) -> AccessContext:
    context = onboarded(account)
    if not context.account.is_manager:
        raise Forbidden("Forbidden - Manager access required")
    return context


def employee_only(account: Account | None) -> AccessContext:
    context = onboarded(account)
    if context.account.is_manager:
        raise Forbidden("Forbidden - Employee access only")
    if not context.account.is_approved:
        raise Forbidden("Account pending approval", redirect=PENDING_APPROVAL_REDIRECT)
    return context


def ensure_same_workplace(context: AccessContext, workplace_id: int | None, message: str) -> None:
    if workplace_id != context.workplace_id:
        raise Forbidden(message)
