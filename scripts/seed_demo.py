"""Seed an invite code plus a demo workplace with a manager, an employee and one week of shifts."""

from datetime import timedelta

from shiftboard.db import SessionLocal
from shiftboard.models import Account, Invite, Shift, ShiftAssignment, Workplace
from shiftboard.services import calendar

INVITE_CODE = "DEMO-MANAGER"
BUSINESS_NAME = "Demo Cafe"
MANAGER_ID = "demo-manager"
EMPLOYEE_ID = "demo-employee"


def ensure_invite(session, code: str) -> Invite:
    invite = session.query(Invite).filter(Invite.code == code).one_or_none()
    if invite is None:
        invite = Invite(code=code, is_used=False)
        session.add(invite)
        session.flush()
    return invite


def ensure_account(session, account_id: str, email: str, full_name: str, is_manager: bool) -> Account:
    account = session.query(Account).filter(Account.id == account_id).one_or_none()
    if account:
        return account
    account = Account(
        id=account_id,
        email=email,
        username=email.split("@")[0].replace(".", ""),
        full_name=full_name,
        is_manager=is_manager,
        is_active=True,
        is_approved=True,
    )
    session.add(account)
    session.flush()
    return account


def ensure_workplace(session, manager: Account) -> Workplace:
    workplace = session.query(Workplace).filter(Workplace.business_name == BUSINESS_NAME).one_or_none()
    if workplace is None:
        workplace = Workplace(name=manager.full_name, business_name=BUSINESS_NAME, manager_id=manager.id)
        session.add(workplace)
        session.flush()
    manager.workplace_id = workplace.id
    return workplace


def ensure_week(session, workplace: Workplace, employee: Account) -> None:
    start = calendar.next_week_start()
    for offset in range(5):
        shift_date = start + timedelta(days=offset)
        for part in ("morning", "evening"):
            shift = (
                session.query(Shift)
                .filter(
                    Shift.workplace_id == workplace.id,
                    Shift.shift_date == shift_date,
                    Shift.shift_part == part,
                )
                .one_or_none()
            )
            if shift is None:
                shift = Shift(workplace_id=workplace.id, shift_date=shift_date, shift_part=part)
                session.add(shift)
                session.flush()
            if part == "morning" and not any(a.account_id == employee.id for a in shift.assignments):
                session.add(ShiftAssignment(shift_id=shift.id, account_id=employee.id))


def main() -> None:
    with SessionLocal() as session:
        ensure_invite(session, INVITE_CODE)
        manager = ensure_account(session, MANAGER_ID, "manager@example.com", "Demo Manager", True)
        workplace = ensure_workplace(session, manager)
        employee = ensure_account(session, EMPLOYEE_ID, "employee@example.com", "Demo Employee", False)
        employee.workplace_id = workplace.id
        session.flush()
        ensure_week(session, workplace, employee)
        session.commit()
        print(f"Seeded workplace '{BUSINESS_NAME}' (id={workplace.id}); spare invite code: {INVITE_CODE}")


if __name__ == "__main__":
    main()
