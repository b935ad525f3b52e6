from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..errors import Internal
from ..models import UserRequest


def _find_request(db: Session, account_id: str, workplace_id: int) -> UserRequest | None:
    return (
        db.query(UserRequest)
        .filter(UserRequest.account_id == account_id, UserRequest.workplace_id == workplace_id)
        .one_or_none()
    )


def submit_request(db: Session, account_id: str, workplace_id: int, text: str) -> UserRequest:
    """Store the employee's availability statement, replacing any earlier one."""
    try:
        request = _find_request(db, account_id, workplace_id)
        if request is None:
            request = UserRequest(account_id=account_id, workplace_id=workplace_id, requests=text)
            db.add(request)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                request = _find_request(db, account_id, workplace_id)
                if request is None:
                    raise
                request.requests = text
                db.commit()
        else:
            request.requests = text
            db.commit()
        db.refresh(request)
    except SQLAlchemyError as exc:
        db.rollback()
        raise Internal("Failed to save request") from exc
    return request


def my_requests(db: Session, account_id: str, workplace_id: int) -> list[UserRequest]:
    return (
        db.query(UserRequest)
        .filter(UserRequest.account_id == account_id, UserRequest.workplace_id == workplace_id)
        .order_by(UserRequest.updated_at.desc(), UserRequest.id.desc())
        .all()
    )


def workplace_requests(db: Session, workplace_id: int) -> list[UserRequest]:
    return (
        db.query(UserRequest)
        .options(joinedload(UserRequest.account))
        .filter(UserRequest.workplace_id == workplace_id)
        .order_by(UserRequest.updated_at.desc(), UserRequest.id.desc())
        .all()
    )


def serialize_request(request: UserRequest) -> dict:
    account = request.account
    return {
        "id": request.id,
        "account_id": request.account_id,
        "workplace_id": request.workplace_id,
        "requests": request.requests,
        "created_at": request.created_at.isoformat() if request.created_at else None,
        "updated_at": request.updated_at.isoformat() if request.updated_at else None,
        "user": {
            "id": account.id,
            "full_name": account.full_name,
            "email": account.email,
            "avatar_url": account.avatar_url,
        }
        if account
        else None,
    }
