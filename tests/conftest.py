"""
Shared fixtures: a file-backed SQLite database per test (safe for the bulk worker
threads), a fresh policy cache and a fixed operating-timezone clock.
"""

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.cache import PolicyCache, get_policy_cache
from app.database import build_engine, get_db, get_session_factory, init_db
from app.domain.scheduling.repository import SchedulePolicyRepository
from app.domain.subscriptions.admin_router import bulk_rate_limit
from app.models import STATUS_ACTIVE, Subscription
from app.shared.clock import get_clock, operating_tz

# Monday 10:00 in the operating timezone
FIXED_NOW = datetime(2026, 3, 2, 10, 0, tzinfo=operating_tz())


def local_time(year, month, day, hour=10, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=operating_tz())


def fixed_clock(moment):
    return lambda: moment


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    SchedulePolicyRepository.seed_defaults(session)
    yield session
    session.close()


@pytest.fixture
def policy_cache(session_factory):
    def loader(category):
        session = session_factory()
        try:
            return SchedulePolicyRepository.get_snapshot(session, category)
        finally:
            session.close()

    return PolicyCache(loader)


@pytest.fixture
def clock():
    return fixed_clock(FIXED_NOW)


@pytest.fixture
def make_subscription(db):
    def _make(user_id, category="juices", status=STATUS_ACTIVE, **fields):
        fields.setdefault("next_delivery_date", date(2026, 3, 4))
        fields.setdefault("subscription_start_date", date(2026, 2, 2))
        fields.setdefault("subscription_end_date", date(2026, 5, 2))
        fields.setdefault("duration_months", 3)
        subscription = Subscription(user_id=user_id, category=category, status=status, **fields)
        db.add(subscription)
        db.commit()
        db.refresh(subscription)
        return subscription

    return _make


@pytest.fixture
def client(db, session_factory, policy_cache, clock):
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    async def no_rate_limit():
        return None

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_policy_cache] = lambda: policy_cache
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[bulk_rate_limit] = no_rate_limit

    yield TestClient(app)

    app.dependency_overrides.clear()
