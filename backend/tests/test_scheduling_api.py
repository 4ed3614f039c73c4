from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.deps import get_db
from app.db.models.calendar_event import CalendarEvent
from app.db.models.holiday import Holiday
from app.main import app


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    CalendarEvent.__table__.create(bind=engine)
    Holiday.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _seed_busy(session_factory, *ranges) -> None:
    session = session_factory()
    try:
        for start, end in ranges:
            session.add(CalendarEvent(calendar_id="primary", title="Busy", start_at=start, end_at=end))
        session.commit()
    finally:
        session.close()


def _utc(year, month, day, hour, minute=0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def test_slot_search_returns_earliest_slot(client):
    test_client, _ = client

    response = test_client.post("/slots/search", json={"date": "2030-01-07", "preferred_start": "10:00"})

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2030-01-07"
    assert data["start"] == "2030-01-07T10:00:00+09:00"
    assert data["end"] == "2030-01-07T11:00:00+09:00"
    assert response.headers["X-Request-Id"] == data["request_id"]


def test_slot_search_honours_windows_and_gap(client):
    test_client, session_factory = client
    # 09:00-09:40 JST
    _seed_busy(session_factory, (_utc(2030, 1, 7, 0), _utc(2030, 1, 7, 0, 40)))

    response = test_client.post(
        "/slots/search",
        json={
            "date": "2030-01-07",
            "business_windows": ["09:00-12:00"],
            "min_gap_minutes": 30,
            "duration_hours": 0.5,
            "preferred_start": "09:00",
        },
    )

    assert response.status_code == 200
    assert response.json()["start"] == "2030-01-07T10:10:00+09:00"


def test_slot_search_rejects_bad_input(client):
    test_client, _ = client

    assert test_client.post("/slots/search", json={"date": "2030-13-01"}).status_code == 400
    assert test_client.post("/slots/search", json={"date": "2030-01-07", "preferred_start": "25:00"}).status_code == 400
    assert (
        test_client.post("/slots/search", json={"date": "2030-01-07", "business_windows": ["12:00-09:00"]}).status_code
        == 400
    )


def test_slot_search_conflict_when_horizon_is_full(client):
    test_client, session_factory = client
    first = _utc(2030, 1, 6, 15)  # 2030-01-07 00:00 JST
    _seed_busy(session_factory, *[(first + timedelta(days=i), first + timedelta(days=i, hours=23)) for i in range(30)])

    response = test_client.post("/slots/search", json={"date": "2030-01-07"})

    assert response.status_code == 409


def test_free_busy_lists_intervals_in_range(client):
    test_client, session_factory = client
    _seed_busy(
        session_factory,
        (_utc(2030, 1, 7, 1), _utc(2030, 1, 7, 2)),
        (_utc(2030, 1, 8, 5), _utc(2030, 1, 8, 6)),
        (_utc(2030, 1, 20, 5), _utc(2030, 1, 20, 6)),
    )

    response = test_client.get("/freebusy", params={"time_min": "2030-01-07", "time_max": "2030-01-08"})

    assert response.status_code == 200
    data = response.json()
    assert data["time_zone"] == "Asia/Tokyo"
    assert [item["start"] for item in data["busy"]] == [
        "2030-01-07T10:00:00+09:00",
        "2030-01-08T14:00:00+09:00",
    ]


def test_free_busy_range_is_limited(client):
    test_client, _ = client

    response = test_client.get("/freebusy", params={"time_min": "2030-01-01", "time_max": "2030-06-01"})

    assert response.status_code == 400


def test_slot_search_accepts_window_ending_at_midnight(client):
    test_client, _ = client

    response = test_client.post(
        "/slots/search",
        json={"date": "2030-01-07", "business_windows": ["19:00-24:00"], "preferred_start": "22:00"},
    )

    assert response.status_code == 200
    assert response.json()["end"] == "2030-01-07T23:00:00+09:00"


def test_slot_search_reports_unavailable_calendar(client):
    test_client, session_factory = client
    session = session_factory()
    try:
        session.execute(text("DROP TABLE calendar_events"))
        session.commit()
    finally:
        session.close()

    response = test_client.post("/slots/search", json={"date": "2030-01-07"})

    assert response.status_code == 503
