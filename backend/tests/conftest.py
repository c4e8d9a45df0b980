import os

# settings are read once, at import time of slotbook.database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_EMAIL"] = "Admin@Example.com"
os.environ["REDIS_URL"] = ""
os.environ["IDENTITY_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from slotbook.database import get_db, get_session_factory
from slotbook.dependencies import get_account_provider, get_client_cache
from slotbook.models import Base
from slotbook.services.feed import LocalChangeFeed, get_change_feed
from slotbook.services.identity import Identity
from slotbook.services.sessions import Backends

from fakes import FakeAccountProvider


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def feed():
    return LocalChangeFeed()


@pytest.fixture
def admin():
    return Identity(user_id="admin-uid", email="admin@example.com", is_admin=True)


@pytest.fixture
def alice():
    return Identity(user_id="alice-uid", email="alice@example.com")


@pytest.fixture
def bob():
    return Identity(user_id="bob-uid", email="bob@example.com")


@pytest.fixture
def backends(db, feed, session_factory):
    return Backends(db=db, feed=feed, session_factory=session_factory)


@pytest.fixture
def account_provider():
    return FakeAccountProvider()


@pytest.fixture
def client(session_factory, feed, account_provider):
    from slotbook.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_change_feed] = lambda: feed
    app.dependency_overrides[get_client_cache] = lambda: None
    app.dependency_overrides[get_account_provider] = lambda: account_provider

    yield TestClient(app)

    app.dependency_overrides.clear()


def headers_for(identity: Identity) -> dict:
    headers = {"X-User-Id": identity.user_id}
    if identity.email:
        headers["X-User-Email"] = identity.email
    return headers


@pytest.fixture
def as_user():
    return headers_for
