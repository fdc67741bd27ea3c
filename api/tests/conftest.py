from datetime import datetime, timedelta, timezone

import pytest

from nearmatch.database import build_engine, build_session_factory, init_db
from nearmatch.repo import UserRepository
from nearmatch.services.ledger import ActionLedger
from nearmatch.services.locator import GeoCandidateLocator
from nearmatch.services.match_engine import MatchEngine


class StepClock:
    """Deterministic clock: every call moves one second forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def db_engine(tmp_path):
    eng = build_engine(
        f"sqlite+pysqlite:///{tmp_path / 'nearmatch.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def users(session_factory, clock):
    return UserRepository(session_factory, clock=clock)


@pytest.fixture
def ledger(session_factory, clock):
    return ActionLedger(session_factory, clock=clock)


@pytest.fixture
def matcher(ledger, users):
    return MatchEngine(ledger, users)


@pytest.fixture
def locator(users):
    return GeoCandidateLocator(users)


@pytest.fixture
def make_user(users):
    def _make(user_id: str, lat: float | None = None, lon: float | None = None, **kwargs):
        kwargs.setdefault("is_onboarding_completed", True)
        return users.create(user_id, latitude=lat, longitude=lon, **kwargs)

    return _make
