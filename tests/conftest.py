"""
Shared fixtures: a fake clock, an isolated QueryCache and a DatabaseService
backed by an in-memory SQLite database.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.tables import init_tables
from app.services.db_service import DatabaseService
from app.services.query_cache import QueryCache


class FakeClock:
    """Manually advanced clock for freshness tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFetch:
    """Zero-argument fetch function that records how often it ran."""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return QueryCache(ttl_seconds=60, clock=clock)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_service(session_factory, cache):
    return DatabaseService(session_factory, cache)


@pytest.fixture
def seeded(db_service):
    """
    One startup with one active position, and one student with a complete profile.

    Returns the ids as a dict.
    """
    owner_id = "owner-1"
    student_id = "student-1"
    startup = db_service.register_startup(owner_id, {
        "name": "Acme Robotics",
        "website": "https://acme.example",
        "domain": "Robotics",
        "summary": "Warehouse robots",
    })
    position = db_service.create_position({
        "startup_id": startup["id"],
        "title": "Firmware Intern",
        "location": "Remote",
        "duration": "3 months",
        "stipend": "20000",
    })
    db_service.upsert_student_profile(student_id, {
        "full_name": "Asha Rao",
        "email": "asha@example.edu",
        "bio": "Third year EEE",
        "skills": ["C", "Embedded"],
    })
    db_service.cache.invalidate()
    return {
        "owner_id": owner_id,
        "startup_id": startup["id"],
        "position_id": position["id"],
        "student_id": student_id,
    }
