from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import Forbidden, Internal, NotFound
from ..models import Account, ShiftAssignment, UserRequest
from .access import AccessContext, ensure_same_workplace

logger = logging.getLogger(__name__)


def list_employees(db: Session, context: AccessContext) -> dict:
    employees = (
        db.query(Account)
        .filter(Account.workplace_id == context.workplace_id, Account.is_manager.is_(False))
        .order_by(Account.created_at.desc(), Account.id.asc())
        .all()
    )
    approved = [employee for employee in employees if employee.is_approved]
    pending = [employee for employee in employees if not employee.is_approved]
    return {"approved": approved, "pending": pending, "total": len(employees)}


def _get_employee(db: Session, context: AccessContext, account_id: str) -> Account:
    employee = db.query(Account).filter(Account.id == account_id).one_or_none()
    if employee is None:
        raise NotFound("Employee not found")
    ensure_same_workplace(context, employee.workplace_id, "Employee does not belong to your workplace")
    return employee


def approve_employee(db: Session, context: AccessContext, account_id: str) -> Account:
    employee = _get_employee(db, context, account_id)
    if employee.is_manager:
        raise Forbidden("Cannot change approval of a manager account")
    employee.is_approved = True
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to approve employee") from exc
    db.refresh(employee)
    logger.info("Employee %s approved by %s", employee.id, context.account_id)
    return employee


def _purge_employee_dependencies(db: Session, account_id: str) -> None:
    db.query(ShiftAssignment).filter(ShiftAssignment.account_id == account_id).delete(synchronize_session=False)
    db.query(UserRequest).filter(UserRequest.account_id == account_id).delete(synchronize_session=False)


def reject_employee(db: Session, context: AccessContext, account_id: str) -> None:
    """Reject a pending or approved employee by deleting the account outright."""
    employee = _get_employee(db, context, account_id)
    if employee.is_manager:
        raise Forbidden("Cannot reject a manager account")
    try:
        _purge_employee_dependencies(db, employee.id)
        db.delete(employee)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to reject employee") from exc
    logger.info("Employee %s rejected by %s", account_id, context.account_id)
