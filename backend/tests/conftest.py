"""
Pytest configuration and fixtures for tests
"""
import os
import random
import tempfile

import pytest

# Point the app at a throwaway SQLite file before any classroom module reads settings
_DB_DIR = tempfile.mkdtemp(prefix="classroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ADMIN_PASSPHRASE"] = "letmein"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ.pop("GEMINI_API_KEY", None)

from fastapi.testclient import TestClient

from classroom.db import Base, SessionLocal, engine
from classroom.ledger import ParticipationLedger
from classroom.main import create_app
from classroom.schemas import SessionInfo
from classroom.services import ClassroomServices
from classroom.storage import LocalStore


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return LocalStore(SessionLocal)


@pytest.fixture
def ledger(store):
    return ParticipationLedger(store)


@pytest.fixture
def session_info():
    # 2024-01-01 is a Monday
    return SessionInfo(date="2024-01-01", period=2, grade="Grade 3 O")


@pytest.fixture
def services(clock, rng):
    return ClassroomServices(SessionLocal, rng=rng, clock=clock, wall_clock=lambda: 1_704_096_000.0)


@pytest.fixture
def client(services):
    app = create_app(services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    response = client.post("/auth/token", json={"passphrase": "letmein"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
