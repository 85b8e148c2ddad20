import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import sessionmaker

import formcraft.models  # noqa: F401 (register models with Base.metadata)
from formcraft.core.database import Base, get_db, json_serializer
from formcraft.main import app as fastapi_app
from formcraft.models import User
from formcraft.services.auth import create_access_token, hash_password

# In-memory SQLite for tests: no PostgreSQL dependency needed
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    json_serializer=json_serializer,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email="owner@example.com", password="secret123"):
    user = User(email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db):
    """The user who owns the forms under test."""
    return make_user(db)


@pytest.fixture
def stranger(db):
    """A second, unrelated user."""
    return make_user(db, email="stranger@example.com")


@pytest.fixture
def owner_headers(owner) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner.id)}"}


@pytest.fixture
def stranger_headers(stranger) -> dict:
    return {"Authorization": f"Bearer {create_access_token(stranger.id)}"}


@pytest.fixture
def client(db):
    """TestClient with overridden DB dependency."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()
