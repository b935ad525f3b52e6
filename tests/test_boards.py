from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from shiftboard.errors import Internal, InvalidInput
from shiftboard.models import ShiftBoard
from shiftboard.services import boards
from shiftboard.services.calendar import as_utc
from tests._factories import assign, make_account, make_shift, make_workplace

WEEK = date(2024, 6, 2)


@pytest.fixture
def acme(db_session):
    workplace, manager = make_workplace(db_session, "Acme")
    return workplace


def test_unboarded_week_reports_defaults(db_session, acme):
    view = boards.get_preferences(db_session, acme.id, WEEK)

    assert view.exists is False
    assert view.is_published is False
    assert view.preferences.closed_days == ["friday"]
    assert view.preferences.shifts_per_day == 2
    assert view.requests_window_start is None
    assert db_session.query(ShiftBoard).count() == 0


def test_week_start_must_be_a_sunday(db_session, acme):
    with pytest.raises(InvalidInput):
        boards.get_preferences(db_session, acme.id, date(2024, 6, 3))
    with pytest.raises(InvalidInput):
        boards.set_published(db_session, acme.id, date(2024, 6, 5), True, "manager-1")


def test_invalid_preferences_leave_week_unboarded(db_session, acme):
    with pytest.raises(InvalidInput) as excinfo:
        boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": ["friday"], "shifts_per_day": 11})
    assert excinfo.value.details

    assert boards.get_preferences(db_session, acme.id, WEEK).exists is False

    boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": ["friday"], "shifts_per_day": 3})
    view = boards.get_preferences(db_session, acme.id, WEEK)
    assert view.exists is True
    assert view.preferences.shifts_per_day == 3
    assert view.is_published is False


def test_unknown_weekday_is_rejected(db_session, acme):
    with pytest.raises(InvalidInput):
        boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": ["funday"], "shifts_per_day": 2})


def test_closed_days_are_normalized(db_session, acme):
    board = boards.set_preferences(
        db_session, acme.id, WEEK, {"closed_days": ["Friday", "friday", "SATURDAY"], "shifts_per_day": 2}
    )
    assert board.preferences["closed_days"] == ["friday", "saturday"]


def test_preferences_do_not_touch_publish_state(db_session, acme):
    make_shift(db_session, acme.id, date(2024, 6, 3))
    boards.set_published(db_session, acme.id, WEEK, True, "manager-1")

    board = boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": [], "shifts_per_day": 4})

    assert board.is_published is True
    assert board.content["total_shifts"] == 1


def test_request_window_must_be_ordered(db_session, acme):
    start = datetime(2024, 5, 26, tzinfo=timezone.utc)
    with pytest.raises(InvalidInput):
        boards.set_request_window(db_session, acme.id, WEEK, start, start)

    board = boards.set_request_window(db_session, acme.id, WEEK, start, datetime(2024, 6, 1, tzinfo=timezone.utc))
    assert as_utc(board.requests_window_start) == start
    assert board.is_published is False


def test_publish_builds_snapshot_and_defaults(db_session, acme):
    worker = make_account(db_session, "e1", full_name="Eve", workplace_id=acme.id, is_approved=True)
    evening = make_shift(db_session, acme.id, date(2024, 6, 3), "evening")
    morning = make_shift(db_session, acme.id, date(2024, 6, 3), "morning")
    make_shift(db_session, acme.id, date(2024, 6, 9))  # next week, excluded
    assign(db_session, morning, worker, comment="opens")

    published_at = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)
    board = boards.set_published(db_session, acme.id, WEEK, True, "manager-1", now=published_at)

    assert board.is_published is True
    assert board.preferences == {"closed_days": ["friday"], "shifts_per_day": 2}
    assert as_utc(board.requests_window_start) == datetime(2024, 5, 26, tzinfo=timezone.utc)
    assert as_utc(board.requests_window_end) == datetime(2024, 6, 1, tzinfo=timezone.utc)

    content = board.content
    assert content["published_by"] == "manager-1"
    assert content["published_at"] == published_at.isoformat()
    assert content["total_shifts"] == 2
    assert content["total_assignments"] == 1
    assert [entry["id"] for entry in content["shifts"]] == [morning.id, evening.id]
    worker_entry = content["shifts"][0]["workers"][0]
    assert worker_entry["account_id"] == "e1"
    assert worker_entry["full_name"] == "Eve"
    assert worker_entry["comment"] == "opens"


def test_publish_keeps_existing_window(db_session, acme):
    start = datetime(2024, 5, 20, tzinfo=timezone.utc)
    end = datetime(2024, 5, 25, tzinfo=timezone.utc)
    boards.set_request_window(db_session, acme.id, WEEK, start, end)

    board = boards.set_published(db_session, acme.id, WEEK, True, "manager-1")

    assert as_utc(board.requests_window_start) == start
    assert as_utc(board.requests_window_end) == end


def test_publish_unpublish_publish_round_trip(db_session, acme):
    worker = make_account(db_session, "e1", workplace_id=acme.id, is_approved=True)
    shift = make_shift(db_session, acme.id, date(2024, 6, 4))
    make_shift(db_session, acme.id, date(2024, 6, 5), "noon")
    assign(db_session, shift, worker)

    first = dict(boards.set_published(db_session, acme.id, WEEK, True, "manager-1").content)
    unpublished = boards.set_published(db_session, acme.id, WEEK, False, "manager-1")
    assert unpublished.is_published is False
    assert unpublished.content == {}
    assert unpublished.preferences

    again = boards.set_published(db_session, acme.id, WEEK, True, "manager-1").content
    assert again["total_shifts"] == first["total_shifts"] == 2
    assert again["total_assignments"] == first["total_assignments"] == 1
    assert again["shifts"] == first["shifts"]
    assert db_session.query(ShiftBoard).count() == 1


def test_empty_week_publishes_empty_snapshot(db_session, acme):
    board = boards.set_published(db_session, acme.id, WEEK, True, "manager-1")
    assert board.content["shifts"] == []
    assert board.content["total_shifts"] == 0


def test_publish_is_scoped_per_workplace(db_session, acme):
    other, _ = make_workplace(db_session, "Other", manager_id="manager-2")
    make_shift(db_session, other.id, date(2024, 6, 3))

    board = boards.set_published(db_session, acme.id, WEEK, True, "manager-1")

    assert board.content["total_shifts"] == 0
    assert boards.published_weeks(db_session, acme.id, [WEEK]) == {WEEK}
    assert boards.published_weeks(db_session, other.id, [WEEK]) == set()


def test_schedule_endpoints(client_factory, db_session, acme):
    manager = client_factory({"id": "manager-1", "email": "manager-1@example.com", "user_metadata": {}})

    response = manager.get("/api/manager/schedule/preferences", params={"week_start": "2024-06-02"})
    assert response.status_code == 200
    assert response.json()["exists"] is False

    response = manager.put(
        "/api/manager/schedule/preferences",
        json={"week_start": "2024-06-02", "preferences": {"closed_days": ["friday"], "shifts_per_day": 11}},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_INPUT"

    response = manager.put(
        "/api/manager/schedule/preferences",
        json={"week_start": "2024-06-02", "preferences": {"closed_days": ["friday"], "shifts_per_day": 3}},
    )
    assert response.status_code == 200
    assert response.json()["shift_board"]["preferences"]["shifts_per_day"] == 3

    response = manager.post("/api/manager/schedule/publish", json={"week_start": "2024-06-02", "is_published": True})
    assert response.status_code == 200
    assert response.json()["shift_board"]["is_published"] is True

    state = manager.get("/api/manager/schedule/publish", params={"week_start": "2024-06-02"}).json()
    assert state["shift_board"]["content"]["total_shifts"] == 0

    response = manager.get("/api/manager/schedule/publish", params={"week_start": "2024-06-03"})
    assert response.status_code == 400


def test_start_date_endpoint(client_factory, acme):
    manager = client_factory({"id": "manager-1", "email": "manager-1@example.com", "user_metadata": {}})
    start = date.fromisoformat(manager.get("/api/manager/schedule/start-date").json()["start_date"])
    assert start.weekday() == 6


def test_snapshot_failure_leaves_board_unchanged(db_session, acme, monkeypatch):
    boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": ["monday"], "shifts_per_day": 3})

    def broken_load(db, workplace_id, week_start):
        raise OperationalError("SELECT shifts", {}, Exception("connection reset"))

    monkeypatch.setattr(boards, "load_week_shifts", broken_load)
    with pytest.raises(Internal):
        boards.set_published(db_session, acme.id, WEEK, True, "manager-1")

    db_session.expire_all()
    board = db_session.query(ShiftBoard).one()
    assert board.is_published is False
    assert board.content == {}
    assert board.preferences == {"closed_days": ["monday"], "shifts_per_day": 3}
    assert board.requests_window_start is None


def test_write_failure_rolls_back_publish(db_session, acme, monkeypatch):
    make_shift(db_session, acme.id, date(2024, 6, 3))
    boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": [], "shifts_per_day": 2})

    def broken_commit():
        raise OperationalError("UPDATE shift_boards", {}, Exception("connection reset"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    with pytest.raises(Internal):
        boards.set_published(db_session, acme.id, WEEK, True, "manager-1")
    monkeypatch.undo()

    db_session.expire_all()
    board = db_session.query(ShiftBoard).one()
    assert board.is_published is False
    assert board.content == {}


def test_concurrent_first_write_is_replayed_on_winning_row(db_session, acme, monkeypatch):
    make_shift(db_session, acme.id, date(2024, 6, 3))
    # Another request created the row after our lookup ran.
    boards.set_preferences(db_session, acme.id, WEEK, {"closed_days": ["sunday"], "shifts_per_day": 4})
    real_find = boards.find_board
    calls = {"count": 0}

    def stale_find(db, workplace_id, week_start):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_find(db, workplace_id, week_start)

    monkeypatch.setattr(boards, "find_board", stale_find)
    board = boards.set_published(db_session, acme.id, WEEK, True, "manager-1")

    assert calls["count"] == 2
    assert db_session.query(ShiftBoard).count() == 1
    assert board.is_published is True
    assert board.content["total_shifts"] == 1
    assert board.preferences == {"closed_days": ["sunday"], "shifts_per_day": 4}
