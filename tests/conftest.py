import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import helpdesk.models  # noqa: F401
from helpdesk.api.deps import get_db
from helpdesk.core import broadcast
from helpdesk.core.auth import get_current_user
from helpdesk.core.database import Base
from helpdesk.main import app
from helpdesk.models.lookup import Region
from helpdesk.models.user import User
from helpdesk.services.settings_store import LifecycleSettings
from helpdesk.services.users import set_roles


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def policy():
    return LifecycleSettings()


@pytest.fixture
def make_region(db):
    def _make(name="North"):
        region = Region(name=name)
        db.add(region)
        db.commit()
        return region
    return _make


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(*roles, name=None, region=None, is_active=True):
        counter["n"] += 1
        user = User(
            name=name or f"user{counter['n']}",
            email=f"user{counter['n']}@example.com",
            region_id=region.id if region is not None else None,
            is_active=is_active,
        )
        db.add(user)
        set_roles(db, user, roles)
        db.commit()
        return user
    return _make


@pytest.fixture
def published(monkeypatch):
    """Capture broadcast events instead of posting them to a relay."""
    events = []

    class _Accepted:
        def raise_for_status(self):
            return None

    def fake_post(url, json=None, headers=None, timeout=None):
        events.append(json)
        return _Accepted()

    monkeypatch.setattr(broadcast.settings, "BROADCAST_URL", "http://relay.test/publish")
    monkeypatch.setattr(broadcast.requests, "post", fake_post)
    return events


@pytest.fixture
def client(db, published):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Make every request run as the given user."""
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    return _login
