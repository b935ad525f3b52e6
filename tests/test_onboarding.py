import pytest
from sqlalchemy.exc import OperationalError

from shiftboard.errors import Conflict, Forbidden, Internal, NotFound
from shiftboard.models import Account, Invite, Workplace
from shiftboard.schemas.auth import ExternalIdentity, OnboardingRequest
from shiftboard.services import accounts
from shiftboard.services.identity import reconcile_identity
from shiftboard.services.onboarding import complete_onboarding
from tests._factories import identity, make_invite, make_workplace

MANAGER = ExternalIdentity(id="m1", email="owner@acme.com")
EMPLOYEE = ExternalIdentity(id="e1", email="worker@acme.com")


def _manager_request(**overrides) -> OnboardingRequest:
    fields = {"role": "manager", "business_name": "Acme", "full_name": "Owner", "invite_code": "INV-1"}
    fields.update(overrides)
    return OnboardingRequest(**fields)


def test_manager_onboarding_creates_workplace_and_spends_invite(db_session):
    make_invite(db_session, "INV-1")
    reconcile_identity(db_session, MANAGER)

    result = complete_onboarding(db_session, MANAGER, _manager_request())

    account = db_session.get(Account, "m1")
    workplace = db_session.get(Workplace, result.workplace_id)
    assert result.role == "manager"
    assert result.pending is False
    assert account.is_manager is True
    assert account.is_approved is True
    assert account.workplace_id == workplace.id
    assert workplace.manager_id == "m1"
    assert workplace.business_name == "Acme"
    assert workplace.name == "Owner"
    db_session.expire_all()
    assert db_session.query(Invite).filter(Invite.code == "INV-1").one().is_used is True


def test_manager_onboarding_without_prior_account_row(db_session):
    make_invite(db_session, "INV-1")
    result = complete_onboarding(db_session, MANAGER, _manager_request())
    assert db_session.get(Account, "m1").workplace_id == result.workplace_id


@pytest.mark.parametrize("code", [None, "UNKNOWN"])
def test_manager_needs_a_valid_invite(db_session, code):
    with pytest.raises(Forbidden):
        complete_onboarding(db_session, MANAGER, _manager_request(invite_code=code))
    assert db_session.query(Workplace).count() == 0


def test_used_invite_is_rejected_without_side_effects(db_session):
    make_invite(db_session, "INV-1", is_used=True)
    reconcile_identity(db_session, MANAGER)

    with pytest.raises(Forbidden):
        complete_onboarding(db_session, MANAGER, _manager_request())

    assert db_session.query(Workplace).count() == 0
    account = db_session.get(Account, "m1")
    assert account.workplace_id is None
    assert account.is_manager is False


def test_duplicate_business_name_conflicts(db_session):
    make_workplace(db_session, "Acme", manager_id="other-manager")
    make_invite(db_session, "INV-1")

    with pytest.raises(Conflict):
        complete_onboarding(db_session, MANAGER, _manager_request())
    db_session.expire_all()
    assert db_session.query(Invite).filter(Invite.code == "INV-1").one().is_used is False


def test_link_failure_removes_the_new_workplace(db_session, monkeypatch):
    make_invite(db_session, "INV-1")
    reconcile_identity(db_session, MANAGER)
    real_update = accounts.update_account

    def failing_link(db, account, **fields):
        if fields.get("workplace_id") is not None:
            raise OperationalError("UPDATE accounts", {}, Exception("connection reset"))
        return real_update(db, account, **fields)

    monkeypatch.setattr(accounts, "update_account", failing_link)

    with pytest.raises(Internal):
        complete_onboarding(db_session, MANAGER, _manager_request())

    db_session.expire_all()
    assert db_session.query(Workplace).filter(Workplace.business_name == "Acme").count() == 0
    assert db_session.get(Account, "m1").workplace_id is None
    assert db_session.query(Invite).filter(Invite.code == "INV-1").one().is_used is False


def test_employee_joins_pending_approval(db_session):
    workplace, _ = make_workplace(db_session, "Acme")
    reconcile_identity(db_session, EMPLOYEE)

    result = complete_onboarding(
        db_session,
        EMPLOYEE,
        OnboardingRequest(role="employee", business_name="Acme", full_name="Worker"),
    )

    account = db_session.get(Account, "e1")
    assert result.pending is True
    assert result.workplace_id == workplace.id
    assert account.workplace_id == workplace.id
    assert account.is_approved is False
    assert account.is_manager is False
    assert account.full_name == "Worker"


def test_employee_unknown_business(db_session):
    with pytest.raises(NotFound):
        complete_onboarding(db_session, EMPLOYEE, OnboardingRequest(role="employee", business_name="Nope"))
    assert db_session.get(Account, "e1") is None


def test_second_onboarding_conflicts(db_session):
    make_workplace(db_session, "Acme")
    complete_onboarding(db_session, EMPLOYEE, OnboardingRequest(role="employee", business_name="Acme"))
    with pytest.raises(Conflict):
        complete_onboarding(db_session, EMPLOYEE, OnboardingRequest(role="employee", business_name="Acme"))


def test_signup_endpoint(client_factory, db_session):
    make_invite(db_session, "INV-1")
    client = client_factory(identity("m1", "owner@acme.com"))

    response = client.post(
        "/api/auth/signup",
        json={"role": "manager", "business_name": "Acme", "full_name": "Owner", "invite_code": "INV-1"},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "manager"

    again = client.post(
        "/api/auth/signup",
        json={"role": "manager", "business_name": "Acme 2", "full_name": "Owner", "invite_code": "INV-1"},
    )
    assert again.status_code == 409
    assert again.json()["code"] == "CONFLICT"


def test_signup_requires_identity(client_factory):
    response = client_factory().post("/api/auth/signup", json={"role": "employee", "business_name": "Acme"})
    assert response.status_code == 401


def test_signup_rejects_unknown_role(client_factory):
    client = client_factory(identity("x1", "x@acme.com"))
    response = client.post("/api/auth/signup", json={"role": "owner", "business_name": "Acme"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"


def test_concurrent_manager_onboardings_spend_invite_once(db_session, monkeypatch):
    make_invite(db_session, "INV-1")
    # Both sign-ups read the invite before either one claims it.
    monkeypatch.setattr(accounts, "find_invite", lambda db, code: Invite(code=code, is_used=False))
    second = ExternalIdentity(id="m2", email="owner@beta.com")

    complete_onboarding(db_session, MANAGER, _manager_request())
    with pytest.raises(Forbidden):
        complete_onboarding(db_session, second, _manager_request(business_name="Beta"))

    assert db_session.query(Workplace).count() == 1
    assert db_session.query(Workplace).one().manager_id == "m1"
    beaten = db_session.get(Account, "m2")
    assert beaten is None or beaten.workplace_id is None


def test_failed_workplace_insert_releases_invite(db_session, monkeypatch):
    make_workplace(db_session, "Acme", manager_id="other-manager")
    make_invite(db_session, "INV-1")
    # The business name is taken between the check and the insert.
    monkeypatch.setattr(accounts, "find_workplace_by_business_name", lambda db, name: None)

    with pytest.raises(Conflict):
        complete_onboarding(db_session, MANAGER, _manager_request())

    db_session.expire_all()
    assert db_session.query(Invite).filter(Invite.code == "INV-1").one().is_used is False
    assert db_session.query(Workplace).count() == 1


def test_failed_compensation_still_reports_internal(db_session, monkeypatch):
    make_invite(db_session, "INV-1")
    real_update = accounts.update_account

    def failing_link(db, account, **fields):
        if fields.get("workplace_id") is not None:
            raise OperationalError("UPDATE accounts", {}, Exception("connection reset"))
        return real_update(db, account, **fields)

    def failing_delete(db, workplace_id):
        raise Internal("Failed to remove workplace")

    monkeypatch.setattr(accounts, "update_account", failing_link)
    monkeypatch.setattr(accounts, "delete_workplace", failing_delete)

    with pytest.raises(Internal) as excinfo:
        complete_onboarding(db_session, MANAGER, _manager_request())

    assert excinfo.value.message.startswith("Failed to link workplace")
    db_session.expire_all()
    assert db_session.query(Invite).filter(Invite.code == "INV-1").one().is_used is False
