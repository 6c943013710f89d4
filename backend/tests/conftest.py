# backend/tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from coworking.database import enable_sqlite_fk, get_db
from coworking.main import app
from coworking.models.generated import (
    Base,
    ClassSessions,
    Clients,
    Events,
    Reservations,
    Rooms,
    Teachers,
    Workspaces,
)
from coworking.services import events as events_module
from coworking.services.conflicts import invalidator, occupancy


class RecordingRedis:
    """In-memory stand-in for the few Redis commands the app issues."""

    def __init__(self):
        self.lists: dict[str, list[str]] = {}
        self.values: dict[str, str] = {}
        self.deleted: list[str] = []

    def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    def ping(self):
        return True

    def setex(self, key, ttl, value):
        self.values[key] = value

    def mget(self, keys):
        return [self.values.get(k) for k in keys]

    def keys(self, pattern):
        prefix = pattern.rstrip("*")
        return [k for k in self.values if k.startswith(prefix)]

    def delete(self, *keys):
        removed = 0
        for key in keys:
            self.deleted.append(key)
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed

    def pipeline(self):
        return _Pipeline(self)


class _Pipeline:

    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def setex(self, key, ttl, value):
        self.calls.append((key, ttl, value))
        return self

    def execute(self):
        for key, ttl, value in self.calls:
            self.redis.setex(key, ttl, value)
        self.calls = []


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_fk)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    redis = RecordingRedis()
    monkeypatch.setattr(events_module, "redis_client", redis)
    monkeypatch.setattr(occupancy, "redis_client", redis)
    monkeypatch.setattr(invalidator, "redis_client", redis)
    return redis


@pytest.fixture
def client(session_factory, fake_redis):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ── Seed data ────────────────────────────────────────────────────────────


@pytest.fixture
def customer(db):
    row = Clients(first_name="Anna", last_name="Petrova", phone="+70000000001", email="anna@example.com")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def room(db):
    row = Rooms(
        name="Studio",
        number="12",
        hourly_rate=1000,
        daily_rate=5000,
        daily_rate_coworking=4000,
        weekly_rate_coworking=20000,
        monthly_rate_coworking=60000,
        is_coworking=1,
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def plain_room(db):
    row = Rooms(name="Hall", hourly_rate=2000, daily_rate=9000, is_coworking=0)
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def desks(db, room):
    rows = [
        Workspaces(room_id=room.id, name="Desk A", daily_rate=500, weekly_rate=3000, monthly_rate=9000),
        Workspaces(room_id=room.id, name="Desk B", daily_rate=600, monthly_rate=10000),
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def teacher(db):
    row = Teachers(first_name="Ivan", last_name="Sidorov")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def add_class_session(db):
    def _add(room_id, date, start_time, end_time, teacher_id=None, group_name=None, status="PLANNED"):
        row = ClassSessions(
            room_id=room_id, date=date, start_time=start_time, end_time=end_time,
            teacher_id=teacher_id, group_name=group_name, status=status,
        )
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_event(db):
    def _add(room_id, date, start_time, end_time, name="Open day", status="PLANNED"):
        row = Events(
            room_id=room_id, name=name, date=date,
            start_time=start_time, end_time=end_time, status=status,
        )
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def add_hold(db):
    def _add(room_id, date, start_time, end_time, reserved_by="front desk", status="PLANNED"):
        row = Reservations(
            room_id=room_id, date=date, start_time=start_time, end_time=end_time,
            reserved_by=reserved_by, status=status,
        )
        db.add(row)
        db.commit()
        return row
    return _add
