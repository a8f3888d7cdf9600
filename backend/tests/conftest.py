import os
from datetime import timedelta

# Ensure JWT_SECRET exists before importing the app (main loads the signing config at import time).
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from session_authority.core.base import Base
from session_authority.core import config as app_config
from session_authority.core.config import AuthConfig
from session_authority.core.security import hash_password

# Import models so they register with SQLAlchemy metadata.
from session_authority.models.user import User
from session_authority.models.refresh_token import RefreshToken  # noqa: F401

from session_authority.auth.bearer import BearerValidator
from session_authority.auth.signer import AccessTokenSigner
from session_authority.core.database import get_db
from session_authority.services.refresh_tokens import SqlAlchemyRefreshTokenStore
from session_authority.services.sessions import SessionAuthority
from session_authority.services.users import SqlAlchemyUserDirectory

TEST_EMAIL = "a@x.com"
TEST_PASSWORD = "secret1"


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # The in-memory DB persists across tests (StaticPool); reset schema per test.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def _reset_mutable_settings():
    """
    Tests sometimes tweak global settings (app_config.settings.*). Because that object is
    process-global, restore values after each test to avoid cross-test coupling.
    """
    keys = [
        "JWT_SECRET",
        "ACCESS_TOKEN_TTL",
        "REFRESH_TOKEN_TTL",
    ]
    original = {k: getattr(app_config.settings, k) for k in keys}
    try:
        yield
    finally:
        for k, v in original.items():
            setattr(app_config.settings, k, v)


@pytest.fixture()
def auth_config():
    return AuthConfig(
        signing_secret="test_jwt_secret",
        access_token_ttl=timedelta(minutes=15),
        refresh_token_ttl=timedelta(days=7),
    )


@pytest.fixture()
def signer(auth_config):
    return AccessTokenSigner(auth_config)


@pytest.fixture()
def store(db_session):
    return SqlAlchemyRefreshTokenStore(db_session)


@pytest.fixture()
def directory(db_session):
    return SqlAlchemyUserDirectory(db_session)


@pytest.fixture()
def authority(auth_config, signer, store, directory):
    return SessionAuthority(config=auth_config, signer=signer, store=store, users=directory)


@pytest.fixture()
def validator(signer, directory):
    return BearerValidator(signer, directory)


@pytest.fixture()
def user(db_session):
    u = User(email=TEST_EMAIL, password_hash=hash_password(TEST_PASSWORD))
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture()
def other_user(db_session):
    u = User(email="other@example.com", password_hash=hash_password("other_password"))
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture()
def app(db_session):
    app_config.settings.JWT_SECRET = app_config.settings.JWT_SECRET or "test_jwt_secret"

    from session_authority.main import app as fastapi_app

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture()
def client(app, user):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def login(client):
    """
    Log in through the API and return the JSON body.

    Usage:
        body = login()
        body = login(email="...", password="...")
    """

    def _login(email: str = TEST_EMAIL, password: str = TEST_PASSWORD) -> dict:
        res = client.post("/auth/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        return res.json()

    return _login
