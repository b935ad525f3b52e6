"""Account, workplace and invite store operations.

Each function maps to one store call. Unique violations are classified here so
callers deal with :class:`AccountConflict` or :class:`Conflict` instead of raw
driver errors.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import AccountConflict, Conflict, Internal
from ..models import Account, Invite, Workplace

logger = logging.getLogger(__name__)


def find_account(db: Session, account_id: str) -> Account | None:
    return db.query(Account).filter(Account.id == account_id).one_or_none()


def insert_account(db: Session, **fields) -> Account:
    account = Account(**fields)
    db.add(account)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Only a row that now exists under the same id counts as a lost race.
        if find_account(db, fields["id"]) is not None:
            raise AccountConflict(fields["id"]) from exc
        raise
    db.refresh(account)
    return account


def upsert_account(db: Session, account_id: str, **fields) -> Account:
    account = find_account(db, account_id)
    if account is None:
        try:
            return insert_account(db, id=account_id, **fields)
        except AccountConflict:
            account = find_account(db, account_id)
            if account is None:
                raise
    return update_account(db, account, **fields)


def update_account(db: Session, account: Account, **fields) -> Account:
    for key, value in fields.items():
        setattr(account, key, value)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Account update failed for %s: %s", account.id, exc)
        raise
    db.refresh(account)
    return account


def delete_account(db: Session, account: Account) -> None:
    db.delete(account)
    db.commit()


def find_workplace(db: Session, workplace_id: int) -> Workplace | None:
    return db.query(Workplace).filter(Workplace.id == workplace_id).one_or_none()


def find_workplace_by_business_name(db: Session, business_name: str) -> Workplace | None:
    return db.query(Workplace).filter(Workplace.business_name == business_name).one_or_none()


def insert_workplace(db: Session, *, name: str | None, business_name: str, manager_id: str) -> Workplace:
    workplace = Workplace(name=name, business_name=business_name, manager_id=manager_id)
    db.add(workplace)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Business name already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to create workplace") from exc
    db.refresh(workplace)
    return workplace


def delete_workplace(db: Session, workplace_id: int) -> None:
    try:
        db.query(Workplace).filter(Workplace.id == workplace_id).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to remove workplace") from exc


def find_invite(db: Session, code: str) -> Invite | None:
    return db.query(Invite).filter(Invite.code == code).one_or_none()


def mark_invite_used(db: Session, code: str) -> bool:
    """Claim an unused code with a conditional update; False if another caller got it first."""
    try:
        updated = (
            db.query(Invite)
            .filter(Invite.code == code, Invite.is_used.is_(False))
            .update({Invite.is_used: True}, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to claim invite") from exc
    return bool(updated)


def release_invite(db: Session, code: str) -> None:
    try:
        db.query(Invite).filter(Invite.code == code).update({Invite.is_used: False}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to release invite") from exc
